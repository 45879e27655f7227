import asyncio
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from services.megaplan_client import MegaplanClient  # noqa: E402
from shared.config import load_settings  # noqa: E402
from shared.errors import ExpensesError  # noqa: E402


async def dump_deal(client: MegaplanClient, deal_id: str) -> None:
    """Fetch one deal and save its raw structure, handy for finding custom-field ids and paths."""
    print(f"Fetching deal {deal_id}...")
    try:
        deal = await client.get_deal(deal_id)
    except ExpensesError as exc:
        print(f"Error: {exc.message}")
        return

    text = json.dumps(deal, indent=2, ensure_ascii=False)
    print(text)
    target = Path(f"deal-{deal_id}-structure.json")
    target.write_text(text, encoding="utf-8")
    print(f"Saved to {target}")


async def main(deal_ids: list[str]) -> None:
    load_dotenv()
    async with MegaplanClient(load_settings()) as client:
        for deal_id in deal_ids:
            await dump_deal(client, deal_id)


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python scripts/dump_deal_structure.py <dealId> [<dealId> ...]")
        sys.exit(1)
    asyncio.run(main(sys.argv[1:]))
