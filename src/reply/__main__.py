"""
=============================================================================
REPLY PREVIEW CLI
=============================================================================

Render a reply offline and print the exact HTTP response a client would
receive. Handy for checking templates and error pages without a server.

    python -m reply --data '{"name": "Sherlock"}' --status 201

    python -m reply --renderer template --templates ./templates \\
        --pattern 'pages/*.html' --base base.html \\
        --key hello.html --data '{"Name": "Sherlock"}'

Exit status: 0 for a 1xx-3xx reply, 1 for 4xx/5xx (including a fallback
500), 2 for bad arguments or templates that fail to load.

=============================================================================
"""

import argparse
import json
import sys
from typing import List, Optional

from . import __version__
from .config import ReplyConfig
from .engine import Engine
from .errors import TemplateLoadError
from .http.transport import ResponseRecorder
from .options import Options


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m reply",
        description="Render a reply and print the raw HTTP response",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m reply --data '{"id": 1}'                      # JSON 200
  python -m reply --data '{"id": 1}' --status 201         # JSON 201
  python -m reply --renderer template --templates ./t --key page.html
  python -m reply --renderer template --templates ./t --key missing --debug
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # RENDERER
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--renderer", "-r", choices=["json", "template"], default="json",
                        help="Output format (default: json)")
    parser.add_argument("--templates", "-t", default=None,
                        help="Template directory (required for --renderer template)")
    parser.add_argument("--pattern", default="*.html",
                        help="Glob for page templates under --templates (default: *.html)")
    parser.add_argument("--base", default=None,
                        help="Layout template every page extends")

    # ─────────────────────────────────────────────────────────────────────
    # REPLY
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--key", "-k", default="", help="Template to render")
    parser.add_argument("--block", "-b", default="", help="Block inside --key to render")
    parser.add_argument("--data", "-d", default="null", help="Payload as JSON (default: null)")
    parser.add_argument("--status", "-s", type=int, default=200, help="Status code (default: 200)")
    parser.add_argument("--debug", action="store_true",
                        help="Show the real error text if rendering fails")

    # ─────────────────────────────────────────────────────────────────────
    # META
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--log-level", "-l", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        default="WARNING", help="Logging level (default: WARNING)")
    parser.add_argument("--log-format", choices=["text", "json"], default="text",
                        help="Log line format on stderr (default: text)")
    parser.add_argument("--version", "-v", action="version", version=f"reply {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        data = json.loads(args.data)
    except json.JSONDecodeError as e:
        parser.error(f"--data is not valid JSON: {e}")

    config = ReplyConfig(
        renderer=args.renderer,
        template_dir=args.templates,
        template_pattern=args.pattern,
        base_template=args.base,
        debug=args.debug,
        log_level=args.log_level,
        log_format=args.log_format,
    )
    try:
        engine = Engine.from_config(config)
    except (ValueError, TemplateLoadError) as e:
        parser.error(str(e))

    recorder = ResponseRecorder()
    engine.reply_or_error(
        recorder,
        args.status,
        Options(render_key=args.key, sub_template=args.block, data=data, debug=args.debug),
    )

    response = recorder.response()
    sys.stdout.buffer.write(response.to_bytes())
    sys.stdout.buffer.write(b"\n")
    sys.stdout.flush()
    return 0 if response.status < 400 else 1


if __name__ == "__main__":
    sys.exit(main())
