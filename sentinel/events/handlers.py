from sentinel.core.event_bus import (
    ANALYSIS_COMPLETED,
    ANALYSIS_FAILED,
    PIPELINE_STATE_CHANGED,
    EventBus,
    event_bus,
)
from sentinel.core.logging import get_logger


logger = get_logger()


def handle_state_changed(payload: dict):
    """
    Expected payload keys: run_id (int), stage (str), progress (int).
    Progress ticks are chatty, so debug level only.
    """
    logger.debug(
        "pipeline_progress",
        run_id=payload["run_id"],
        stage=payload["stage"],
        progress=payload["progress"],
    )


def handle_analysis_completed(payload: dict):
    result = payload["result"]
    log = logger.warning if result.bad_event else logger.info
    log(
        "analysis_verdict",
        run_id=payload["run_id"],
        bad_event=result.bad_event,
        event_type=result.event_type,
        confidence=result.confidence,
        anomaly_start=result.anomaly_start,
        anomaly_end=result.anomaly_end,
    )


def handle_analysis_failed(payload: dict):
    logger.error(
        "analysis_failure_reported",
        run_id=payload["run_id"],
        error_type=payload.get("error_type"),
        message=payload["message"],
    )


def register_handlers(bus: EventBus = event_bus):
    bus.subscribe(PIPELINE_STATE_CHANGED, handle_state_changed)
    bus.subscribe(ANALYSIS_COMPLETED, handle_analysis_completed)
    bus.subscribe(ANALYSIS_FAILED, handle_analysis_failed)


def unregister_handlers(bus: EventBus = event_bus):
    bus.unsubscribe(PIPELINE_STATE_CHANGED, handle_state_changed)
    bus.unsubscribe(ANALYSIS_COMPLETED, handle_analysis_completed)
    bus.unsubscribe(ANALYSIS_FAILED, handle_analysis_failed)
