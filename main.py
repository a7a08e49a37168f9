import argparse
import asyncio
import json
import sys
import time

from sentinel.core.logging import setup_logging, get_logger
from sentinel.core.config import get_settings
from sentinel.events.handlers import register_handlers
from sentinel.inference.ollama_client import OllamaAnalysisClient
from sentinel.pipeline.controller import PipelineController

MAX_RETRIES = 10
RETRY_DELAY = 3


def wait_for_ollama(logger, client: OllamaAnalysisClient):
    settings = get_settings()
    for attempt in range(1, MAX_RETRIES + 1):
        if client.check_ready():
            logger.info("ollama_ready", host=settings.ollama_host)
            return
        logger.warning("ollama_not_ready_retrying", attempt=attempt)
        time.sleep(RETRY_DELAY)
    raise RuntimeError("Ollama not ready after retries")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Analyze one video for suspicious events and print the result as JSON.",
    )
    parser.add_argument("video", help="Path to the video file")
    parser.add_argument(
        "--frames",
        type=int,
        default=None,
        help="Number of frames to sample (default: FRAME_TARGET_COUNT)",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    setup_logging(stream=sys.stderr)
    logger = get_logger()
    settings = get_settings()
    if args.frames is not None:
        settings = settings.model_copy(update={"frame_target_count": args.frames})

    logger.info("starting_application", backend=settings.analysis_backend)
    register_handlers()

    client = None
    if settings.analysis_backend == "ollama":
        client = OllamaAnalysisClient(settings)
        wait_for_ollama(logger, client)

    controller = PipelineController(settings=settings, client=client)
    result = asyncio.run(controller.process_video(args.video))

    if result is None:
        print(json.dumps({"error": controller.last_error}), file=sys.stderr)
        return 1

    print(json.dumps(result.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
