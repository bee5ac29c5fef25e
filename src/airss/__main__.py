"""Entry point for AirSS: python -m airss"""

import asyncio
import logging
import re

from airss.config import load_settings
from airss.events import Alert, Event, InitDone, ItemsLoaded, ShutDown
from airss.model import Model

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)
# Quiet noisy loggers
logging.getLogger("httpx").setLevel(logging.WARNING)

HELP = """Commands:
  n            next item
  p            previous item
  c            current item
  d            delete current item
  s <url>      subscribe to a feed
  u <feed id>  unsubscribe a feed
  q            quit
"""

TAG_RE = re.compile(r"<[^>]+>")


def print_event(event: Event) -> None:
    if isinstance(event, Alert):
        if event.text:
            print(f"[{event.severity}] {event.text}")
    elif isinstance(event, ItemsLoaded):
        print(f"({event.cursor + 1}/{event.length})")
    elif isinstance(event, InitDone):
        print("AirSS ready! Type h for help (Ctrl+C to quit).\n")
    elif isinstance(event, ShutDown):
        print("Goodbye!")


def print_item(item) -> None:
    if item is None:
        return
    print(f"\n{item.title or '(untitled)'} [{item.feed_title}]")
    print(item.url)
    print(TAG_RE.sub("", item.content_html).strip()[:600])
    if item.tags:
        print("tags: " + ", ".join(item.tags))
    print()


async def reader_loop(model: Model) -> None:
    """Run the interactive reading loop."""
    while True:
        try:
            line = await asyncio.to_thread(input, "> ")
        except EOFError:
            break

        command, _, arg = line.strip().partition(" ")
        if command == "q":
            break
        elif command == "n":
            print_item(await model.forward_item())
        elif command == "p":
            print_item(await model.backward_item())
        elif command == "c":
            print_item(await model.current_item())
        elif command == "d":
            await model.delete_item()
        elif command == "s" and arg:
            await model.subscribe(arg)
        elif command == "u" and arg.isdigit():
            await model.unsubscribe(int(arg))
        elif command:
            print(HELP)


async def main() -> None:
    """Initialize the model and run the reader."""
    model = Model(load_settings())
    model.events.subscribe(print_event)

    await model.reinit()
    try:
        await reader_loop(model)
    except KeyboardInterrupt:
        pass
    finally:
        # let queued polls finish before closing the store
        await model.shutdown()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
