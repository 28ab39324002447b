# diagnose.py
import argparse
import json
import logging
import sys

import config
from diagnosis_errors import DiagnosisError
from diagnosis_service import PlaceDiagnosisService, SocialDiagnosisService
from result_cache import ResultCache

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Place / social profile health diagnosis")
    sub = parser.add_subparsers(dest="command", required=True)

    place = sub.add_parser("place", help="Diagnose a Naver place link")
    place.add_argument("url", help="Place URL or naver.me short link")

    social = sub.add_parser("social", help="Diagnose an Instagram profile")
    social.add_argument("handle", help="Handle, @handle or profile URL")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8080)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format=config.LOG_FORMAT,
        datefmt="%H:%M:%S",
    )

    if args.command == "serve":
        import uvicorn

        uvicorn.run("server:app", host=args.host, port=args.port)
        return 0

    cache = ResultCache()
    try:
        if args.command == "place":
            diagnosis, source = PlaceDiagnosisService(cache).diagnose(args.url)
            body = {"ok": True, "source": source, **diagnosis.to_dict()}
        else:
            diagnosis, source = SocialDiagnosisService(cache).diagnose(args.handle)
            body = {"ok": True, "source": source, "data": diagnosis.to_dict()}
    except DiagnosisError as e:
        logger.error(f"Diagnosis failed: {e.code}")
        print(json.dumps(e.to_dict(), ensure_ascii=False, indent=2))
        return 1

    print(json.dumps(body, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
