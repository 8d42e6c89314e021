"""CLI client for driving a running Clop Sandbox server.

Usage:
    python sandbox_cli.py scenarios
    python sandbox_cli.py load hazard-shortcut
    python sandbox_cli.py simulate --mode auto --speed 4
    python sandbox_cli.py personalities --seed 42 --ticks 600

Environment variables:
    SANDBOX_URL      Server URL (default: http://127.0.0.1:8000)
"""

import argparse
import os
import sys

import httpx

DEFAULT_URL = os.environ.get("SANDBOX_URL", "http://127.0.0.1:8000")


def _request(method: str, url: str, **kwargs) -> httpx.Response:
    """Make an HTTP request, handling connection errors."""
    kwargs.setdefault("timeout", 10.0)
    try:
        return httpx.request(method, url, **kwargs)
    except httpx.ConnectError:
        print(f"Error: Could not connect to server at {url}", file=sys.stderr)
        print("Is the server running?", file=sys.stderr)
        sys.exit(1)


def _handle_error(resp: httpx.Response) -> None:
    """Handle common error status codes."""
    if resp.status_code in (400, 404):
        detail = resp.json().get("detail", "Request failed")
        print(f"Error: {detail}", file=sys.stderr)
        sys.exit(1)
    elif resp.status_code != 200:
        print(f"Error: {resp.status_code} {resp.text}", file=sys.stderr)
        sys.exit(1)


def list_scenarios(url: str) -> None:
    resp = _request("GET", f"{url}/levels/scenarios")
    _handle_error(resp)
    print(f"{'ID':<18} {'PHASE':<6} {'DESCRIPTION'}")
    print("-" * 70)
    for s in resp.json():
        print(f"{s['id']:<18} {s['phase']:<6} {s['description']}")


def load_scenario(url: str, scenario_id: str) -> None:
    resp = _request("POST", f"{url}/levels/load", json={"scenario_id": scenario_id})
    _handle_error(resp)
    grid = resp.json()["level"]["grid"]
    print(f"Loaded {scenario_id} ({grid['width']}x{grid['height']})")


def simulate(url: str, mode: str, speed: int, dt: float, max_ticks: int) -> None:
    """Run the AI simulator until it completes and print the result."""
    _handle_error(_request("POST", f"{url}/simulator/reset"))
    _handle_error(_request("POST", f"{url}/simulator/mode", json={"mode": mode}))
    _handle_error(_request("POST", f"{url}/simulator/speed", json={"speed": speed}))

    state = None
    if mode == "auto":
        _handle_error(_request("POST", f"{url}/simulator/play"))
        for _ in range(max_ticks):
            resp = _request("POST", f"{url}/simulator/tick", json={"dt": dt})
            _handle_error(resp)
            state = resp.json()
            if state["result"] is not None:
                break
    else:
        for _ in range(max_ticks):
            resp = _request("POST", f"{url}/simulator/step")
            _handle_error(resp)
            state = resp.json()
            print(state["status_line"])
            if state["result"] is not None or not state["executed"]:
                break

    result = state["result"] if state else None
    if result is None:
        print(f"No result after {max_ticks} ticks")
        sys.exit(2)
    print(f"Result: {result['type']}")
    print(f"Turns:  {result['turns_taken']}")
    print(f"HP:     {result['final_hp']}")
    if result.get("cause"):
        print(f"Cause:  {result['cause']}")


def run_personalities(url: str, seed: int, ticks: int, dt: float) -> None:
    """Advance the personality tester and print each clop's final snapshot."""
    _handle_error(_request("POST", f"{url}/personalities/seed", json={"seed": seed}))
    resp = _request("POST", f"{url}/personalities/tick", json={"dt": dt, "frames": ticks})
    _handle_error(resp)
    state = resp.json()
    print(f"{'ID':<4} {'PERSONALITY':<12} {'STATUS':<9} {'POS':<8} {'HP':<3}")
    print("-" * 40)
    for clop in state["clops"]:
        pos = f"{clop['position'][0]},{clop['position'][1]}"
        print(
            f"{clop['id']:<4} {clop['personality']:<12} {clop['status']:<9} "
            f"{pos:<8} {clop['hp']:<3}"
        )
    if state["detours"]:
        detours = ", ".join(f"{d['clop_id']}->({d['to'][0]},{d['to'][1]})" for d in state["detours"])
        print(f"Detours: {detours}")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Drive a Clop Sandbox server",
    )

    url_kwargs = dict(
        default=DEFAULT_URL,
        help=f"Server URL (default: {DEFAULT_URL}, or set SANDBOX_URL env var)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    scenarios_parser = subparsers.add_parser("scenarios", help="List built-in test maps")
    scenarios_parser.add_argument("--url", **url_kwargs)

    load_parser = subparsers.add_parser("load", help="Load a built-in test map")
    load_parser.add_argument("scenario", help="Scenario id, e.g. slow-path")
    load_parser.add_argument("--url", **url_kwargs)

    sim_parser = subparsers.add_parser("simulate", help="Run the AI simulator to completion")
    sim_parser.add_argument("--mode", choices=["auto", "step"], default="auto")
    sim_parser.add_argument("--speed", type=int, choices=[1, 2, 4], default=4)
    sim_parser.add_argument("--dt", type=float, default=0.05, help="Frame delta in seconds")
    sim_parser.add_argument("--max-ticks", type=int, default=5000)
    sim_parser.add_argument("--url", **url_kwargs)

    pers_parser = subparsers.add_parser("personalities", help="Run the personality tester")
    pers_parser.add_argument("--seed", type=int, default=42)
    pers_parser.add_argument("--ticks", type=int, default=600)
    pers_parser.add_argument("--dt", type=float, default=0.05, help="Frame delta in seconds")
    pers_parser.add_argument("--url", **url_kwargs)

    args = parser.parse_args()

    if args.command == "scenarios":
        list_scenarios(args.url)
    elif args.command == "load":
        load_scenario(args.url, args.scenario)
    elif args.command == "simulate":
        simulate(args.url, args.mode, args.speed, args.dt, args.max_ticks)
    elif args.command == "personalities":
        run_personalities(args.url, args.seed, args.ticks, args.dt)


if __name__ == "__main__":
    main()
