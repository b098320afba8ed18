from __future__ import annotations

import sys
from pathlib import Path

# Allow running as a script without requiring `PYTHONPATH=.`.
REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

import asyncio
import signal
import threading
import time
from typing import List, Optional, Sequence

import bittensor as bt
import requests
import uvicorn

from flightsurety.oracles.config import load_oracle_env
from flightsurety.oracles.service import OracleService, build_ledger, generate_mock_traffic
from flightsurety.server.app import create_app
from flightsurety.utils.config import config as cli_config
from flightsurety.utils.config import setup_logging


def _wait_rpc_ok(url: str, *, timeout_s: float = 30.0, interval_s: float = 0.5) -> None:
    """Block until the JSON-RPC endpoint answers `net_version`."""
    deadline = time.time() + timeout_s
    last_err: Optional[str] = None
    payload = {"jsonrpc": "2.0", "method": "net_version", "params": [], "id": 1}
    while time.time() < deadline:
        try:
            r = requests.post(url, json=payload, timeout=2.0)
            if r.status_code == 200:
                return
            last_err = f"status={r.status_code}"
        except requests.RequestException as e:
            last_err = str(e)
        time.sleep(interval_s)
    raise RuntimeError(f"Timed out waiting for {url}: {last_err}")


def _run_uvicorn(app, host: str, port: int) -> uvicorn.Server:
    server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_level="warning"))
    t = threading.Thread(target=server.run, daemon=True)
    t.start()
    return server


async def main(argv: Optional[Sequence[str]] = None) -> int:
    cfg = cli_config(argv)
    setup_logging(cfg)
    env = load_oracle_env()

    if env.ledger.mode == "web3":
        try:
            await asyncio.to_thread(_wait_rpc_ok, env.ledger.rpc_url)
        except RuntimeError as e:
            bt.logging.error(str(e))
            return 2

    service = OracleService(build_ledger(env), env)
    await service.start()

    if cfg.oracles.once:
        bt.logging.info(f"Registered {len(service.oracles)} oracles; exiting (--oracles.once).")
        return 0

    http_server: Optional[uvicorn.Server] = None
    if env.http.enabled and not cfg.oracles.no_http:
        http_server = _run_uvicorn(create_app(service.registry), env.http.host, env.http.port)
        bt.logging.info(f"Status endpoint on http://{env.http.host}:{env.http.port}/status")

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, service.stop)
        except NotImplementedError:
            pass

    background: List[asyncio.Task] = []
    if env.ledger.mode == "memory":
        background.append(
            asyncio.create_task(generate_mock_traffic(service, interval_s=env.ledger.mock_request_interval_s))
        )

    try:
        await service.run()
    finally:
        for task in background:
            task.cancel()
        if http_server is not None:
            http_server.should_exit = True
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
