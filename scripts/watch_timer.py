#!/usr/bin/env python3
"""
Follow an event's round timer from a terminal.

Polls the timer API, keeps a local per-second countdown between polls and
rings the terminal bell when a round ends. Organizers can also send a
control action before watching:

    python scripts/watch_timer.py --event-id 7 --action start
"""
import argparse
import logging
import os
import sys
import time

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
from roundtimer.client import EventTimerObserver, RecoveryStore, TimerApiClient
from roundtimer.client.snapshot import ENDED

ACTIONS = ["start", "pause", "resume", "end", "next", "duration"]


def format_view(view):
    minutes, seconds = divmod(view.seconds_remaining, 60)
    return (
        f"[event {view.event_id}] round {view.current_round}/{view.final_round} "
        f"{view.status:<10} {minutes:02d}:{seconds:02d}"
    )


def run_action(observer, args):
    if args.action == "start":
        return observer.start_round()
    if args.action == "pause":
        return observer.pause(args.time_remaining)
    if args.action == "resume":
        return observer.resume()
    if args.action == "end":
        return observer.end_round()
    if args.action == "next":
        return observer.next_round()
    return observer.update_duration(args.round_duration, args.break_duration)


def main():
    load_dotenv()
    parser = argparse.ArgumentParser(description="Watch (and control) an event's round timer")
    parser.add_argument("--event-id", type=int, required=True)
    parser.add_argument("--api-url", default=os.getenv("ROUNDTIMER_API_URL", "http://localhost:5001/api"))
    parser.add_argument("--token", default=os.getenv("ROUNDTIMER_TOKEN"))
    parser.add_argument("--interval", type=float, default=float(os.getenv("ROUNDTIMER_POLL_INTERVAL", 5)))
    parser.add_argument("--client-id", default="cli")
    parser.add_argument("--recovery-dir", default=None)
    parser.add_argument("--action", choices=ACTIONS)
    parser.add_argument("--time-remaining", type=int, default=None)
    parser.add_argument("--round-duration", type=int, default=None)
    parser.add_argument("--break-duration", type=int, default=None)
    parser.add_argument("--once", action="store_true", help="print the current round info and exit")
    args = parser.parse_args()

    if not args.token:
        parser.error("a bearer token is required (--token or ROUNDTIMER_TOKEN)")

    logging.basicConfig(level=logging.WARNING)
    api = TimerApiClient(args.api_url, args.token)

    if args.once:
        print(api.get_round_info(args.event_id))
        return

    store = RecoveryStore(args.recovery_dir, client_id=args.client_id)
    observer = EventTimerObserver(api, args.event_id, poll_interval=args.interval, recovery_store=store)
    observer.notifier.add_handler(
        lambda event_id, round_number: print(f"\a*** Round {round_number} is over ***", flush=True)
    )

    last_line = None
    with observer:
        if args.action:
            error = run_action(observer, args)
            if error:
                print(f"Action '{args.action}' was not applied: {error}")
        try:
            while True:
                view = observer.view
                line = format_view(view)
                if line != last_line:
                    print(line, flush=True)
                    last_line = line
                if view.status == ENDED and observer.state_machine.has_authoritative_state:
                    store.clear(args.event_id)
                    break
                time.sleep(0.2)
        except KeyboardInterrupt:
            pass


if __name__ == "__main__":
    main()
