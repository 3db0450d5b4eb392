from __future__ import annotations

import argparse
import json
import logging
import sys

from sentiment_api.errors import ModelAnalysisError
from sentiment_api.sentiment_service import build_service
from sentiment_api.settings import load_settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Classify texts once and print the results as JSON.")
    parser.add_argument("texts", nargs="*", help="Texts to classify; read one per line from stdin when omitted.")
    args = parser.parse_args(argv)

    texts = args.texts or [line.rstrip("\n") for line in sys.stdin if line.strip()]
    if not texts:
        print("[]")
        return 0

    s = load_settings()
    service = build_service(s)
    logger.info("Analyzing texts: count=%s mode=%s", len(texts), service.mode)

    out: list[dict[str, object]] = []
    exit_code = 0
    try:
        for text in texts:
            try:
                out.append(service.analyze_and_persist(text).to_dict())
            except ModelAnalysisError as e:
                logger.error("Analysis failed: text=%r err=%s", text[:80], e)
                out.append({"text": text, "mensagem": str(e)})
                exit_code = 1
    finally:
        service.close()

    print(json.dumps(out, ensure_ascii=False, indent=2))
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
