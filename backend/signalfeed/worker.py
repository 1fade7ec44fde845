import asyncio
import logging
import sys

from signalfeed.config import Settings, settings
from signalfeed.core.orchestrator import FeedClient, OrchestratorConfig, OrchestratorState, PollingOrchestrator
from signalfeed.log import setup_logging
from signalfeed.services.api_client import SignalFeedClient

log = logging.getLogger("worker")


async def run_once(
    pair: str,
    token: str | None = None,
    cfg: Settings = settings,
    client: FeedClient | None = None,
) -> OrchestratorState:
    """One fetch cycle for `pair`, no polling. Returns the resulting snapshot."""
    owns_client = client is None
    client = client or SignalFeedClient(cfg.endpoints(), timeout=cfg.request_timeout_seconds)
    feed = PollingOrchestrator(
        client,
        OrchestratorConfig(pair=pair.upper(), token=token, free_pairs=cfg.free_pairs),
        owns_client=owns_client,
    )
    try:
        state = await feed.refresh()
    finally:
        await feed.close()

    log.info(
        "%s: %d strategies, %d news items, regime=%s, upcoming=%s, error=%s",
        pair.upper(),
        len(state.strategies),
        len(state.current_news),
        "yes" if state.regime_text else "no",
        state.upcoming.mode if state.upcoming else "none",
        state.error,
    )
    for s in state.strategies:
        log.info(
            "  %s %s %s @ %.5g (tp=%s sl=%s, %s)",
            s.symbol, s.direction, s.strategy_name, s.entry, s.take_profit, s.stop_loss, s.status,
        )
    return state


async def main(argv: list[str]) -> int:
    setup_logging(settings.log_level)
    pair = argv[0] if argv else "XAUUSD"
    token = argv[1] if len(argv) > 1 else None
    state = await run_once(pair, token)
    return 1 if state.error else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1:])))
