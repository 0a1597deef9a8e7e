from __future__ import annotations
import argparse
import sys
import time
from typing import List, Tuple

from car_client import CarGameClient, CarServiceError
from config import load_settings
from engine import RoundController
from formatting import format_error, format_price
from log_config import setup_logging
from models import CarRecord, RoundPhase, ScoreBreakdown
from suggestions import MIN_QUERY_CHARS

# -----------------------------
# Config defaults
# -----------------------------
SETTINGS = load_settings()
DEFAULT_BASE_URL = SETTINGS.base_url

# -----------------------------
# Pretty printers
# -----------------------------
def print_car(ctl: RoundController) -> None:
    car = ctl.car
    if car is None:
        return
    print(f"\n===== Round {ctl.round_label} / {ctl.total_rounds} =====")
    if car.year:
        print(f"Year:         {car.year}")
    facts = [
        ("Mileage", f"{format_price(car.mileage_km)} km" if car.mileage_km is not None else None),
        ("Engine", f"{car.engine_liters} L / {car.engine_hp:.0f} hp"
            if car.engine_liters is not None and car.engine_hp is not None else None),
        ("Fuel", car.fuel),
        ("Transmission", car.transmission),
        ("Drive", car.drive),
        ("Location", car.location),
    ]
    for label, value in facts:
        if value:
            print(f"{label + ':':<14}{value}")
    for line in car.description:
        print(f"  {line}")
    image = ctl.active_image
    gallery = car.gallery
    if image is not None:
        print(f"Photo {ctl.image_index + 1}/{len(gallery)}: {image.src}")

def print_breakdown(bd: ScoreBreakdown, total: int) -> None:
    correct = bd.correct or CarRecord()
    print("\n----- Reveal -----")
    print(f"Car:          {correct.title or '-'} ({correct.year or '-'})")
    print(f"Price:        {format_price(correct.target_price)}")
    print(f"Price error:  {format_error(bd.error)}")
    print(f"Price score:  {bd.price_score}")
    print(f"Model score:  {bd.model_score}")
    print(f"Round score:  {bd.total_score} pts")
    print(f"Total score:  {format_price(total)}")
    print("-" * 18)

def print_suggestions(client: CarGameClient, query: str) -> None:
    query = query.strip()
    if len(query) < MIN_QUERY_CHARS:
        print(f"(type at least {MIN_QUERY_CHARS} characters)")
        return
    try:
        titles = client.search_titles(query)
    except CarServiceError as e:
        print(f"⚠️  Suggestions unavailable: {e}")
        return
    if not titles:
        print("(no matches)")
    for t in titles:
        print(f"  • {t}")

# -----------------------------
# Interactive play loop
# -----------------------------
def _ensure_loaded(ctl: RoundController) -> bool:
    while ctl.phase is RoundPhase.LOAD_FAILED:
        print(f"\n❌ Could not load a car: {ctl.last_error}")
        if input("Retry? [Y/n]: ").strip().lower().startswith("n"):
            return False
        ctl.retry()
    return True

def _prompt_guess(ctl: RoundController, client: CarGameClient) -> bool:
    """Collect a guess. Returns False when the player skips the round."""
    while True:
        raw_price = input("Price guess (or 's' to skip, 'n'/'p' for next/prev photo): ").strip()
        if raw_price.lower() == "s":
            return False
        if raw_price.lower() in ("n", "p"):
            if raw_price.lower() == "n":
                ctl.next_image()
            else:
                ctl.prev_image()
            print(f"Photo {ctl.image_index + 1}/{len(ctl.car.gallery)}: {ctl.active_image.src}"
                  if ctl.active_image else "(no photos)")
            continue
        ctl.set_price_guess(raw_price)
        if ctl.guess.price is None:
            print("Please enter a number.")
            continue
        break
    while True:
        text = input("Model guess ('?text' for suggestions): ")
        if text.startswith("?"):
            print_suggestions(client, text[1:])
            continue
        ctl.set_model_guess(text)
        if not ctl.can_submit:
            print("Please enter a model name.")
            continue
        return True

def interactive_play(base_url: str) -> None:
    client = CarGameClient(base_url=base_url)
    ctl = RoundController(client)
    ctl.start()

    while True:
        if not _ensure_loaded(ctl):
            return
        if ctl.phase is RoundPhase.FINISHED:
            print(f"\n🏁 All {ctl.total_rounds} rounds done. Final score: {format_price(ctl.state.total_score)}")
            if input("Play again? [y/N]: ").strip().lower().startswith("y"):
                ctl.restart()
                continue
            return

        print_car(ctl)
        if _prompt_guess(ctl, client):
            bd = ctl.submit()
            if bd is None:
                print(f"⚠️  Could not score the guess: {ctl.last_error}")
                continue
            print_breakdown(bd, ctl.state.total_score)
        ctl.advance()

# -----------------------------
# Auto-demo play loop
# -----------------------------
def auto_demo_play(base_url: str) -> None:
    """
    Runs a canned 5-round session for quick verification.
    """
    print("\n🤖 Running auto-demo...")
    client = CarGameClient(base_url=base_url)
    ctl = RoundController(client)
    ctl.start()

    demo_guesses: List[Tuple[str, str]] = [
        ("1 500 000", "Toyota Camry"),
        ("900 000", "Lada"),
        ("2 300 000", "Kia Rio"),
        ("3 000 000", "BMW"),
        ("700 000", "Hyundai Solaris"),
    ]
    for price, model in demo_guesses:
        if ctl.phase is RoundPhase.LOAD_FAILED:
            print(f"❌ Could not load a car: {ctl.last_error}")
            sys.exit(1)
        print_car(ctl)
        ctl.set_price_guess(price)
        ctl.set_model_guess(model)
        print(f"Guess: {price} / {model}")
        bd = ctl.submit()
        if bd is not None:
            print_breakdown(bd, ctl.state.total_score)
        ctl.advance()
        time.sleep(0.5)

    print(f"\n🏁 Final score: {format_price(ctl.state.total_score)}")

# -----------------------------
# Run server (programmatically)
# -----------------------------
def run_server(port: int, host: str = "127.0.0.1", reload: bool = True) -> None:
    try:
        import uvicorn
    except ImportError:
        print("❌ uvicorn not installed. Run: pip install -e .")
        sys.exit(1)
    uvicorn.run("api:app", host=host, port=port, reload=reload)

# -----------------------------
# Health checker
# -----------------------------
def health_check(base_url: str) -> None:
    print(f"🔎 Checking server at {base_url} ...")
    try:
        info = CarGameClient(base_url=base_url, retries=0).health()
    except CarServiceError as e:
        print(f"❌ Health check failed: {e}")
        sys.exit(1)
    print(f"✅ API ok ({info.get('cars', 0)} cars, {info.get('priced', 0)} with a price)")

# -----------------------------
# CLI
# -----------------------------
def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Car Guess: server + client in one file")

    sub = p.add_subparsers(dest="cmd", required=True)

    ps = sub.add_parser("serve", help="Start the FastAPI server (uvicorn)")
    ps.add_argument("--port", type=int, default=1121, help="Port to bind")
    ps.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind")
    ps.add_argument("--no-reload", action="store_true", help="Disable auto-reload")

    pp = sub.add_parser("play", help="Play a 5-round session (interactive or auto)")
    pp.add_argument("--base-url", type=str, default=DEFAULT_BASE_URL, help="API base URL")
    pp.add_argument("--auto-demo", action="store_true", help="Run a canned demo instead of prompting")

    ph = sub.add_parser("health", help="Check server availability")
    ph.add_argument("--base-url", type=str, default=DEFAULT_BASE_URL, help="API base URL")

    pq = sub.add_parser("search", help="List model titles matching a query")
    pq.add_argument("query", type=str, help="Part of a model name")
    pq.add_argument("--base-url", type=str, default=DEFAULT_BASE_URL, help="API base URL")

    return p.parse_args()

def main() -> None:
    args = parse_args()
    setup_logging(SETTINGS.log_level if args.cmd == "serve" else "WARNING")

    if args.cmd == "serve":
        run_server(port=args.port, host=args.host, reload=(not args.no_reload))
        return

    if args.cmd == "play":
        try:
            CarGameClient(base_url=args.base_url, retries=0).health()
        except CarServiceError:
            print("⚠️  Could not reach the server. Is it running?\n"
                  "    Start it in another terminal:\n"
                  "    python main.py serve")
            sys.exit(1)

        if args.auto_demo:
            auto_demo_play(args.base_url)
        else:
            interactive_play(args.base_url)
        return

    if args.cmd == "health":
        health_check(args.base_url)
        return

    if args.cmd == "search":
        print_suggestions(CarGameClient(base_url=args.base_url), args.query)
        return

    print("Unknown command. Try: python main.py --help")
    sys.exit(2)

if __name__ == "__main__":
    main()
