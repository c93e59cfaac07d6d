from __future__ import annotations

import argparse
import json
import logging
import mimetypes
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from packages.shared.errors import DossierError
from packages.shared.models import CompileConfig, InputDocument, PageCountMode
from packages.shared.storage import DiskSink
from apps.worker.pipeline import compile_dossier, preview_plan

logger = logging.getLogger("dossier.cli")


def _parse_doc_arg(raw: str) -> tuple[str, Path]:
    if "=" not in raw:
        raise argparse.ArgumentTypeError(f"expected CATEGORY=PATH, got {raw!r}")
    category, path = raw.split("=", 1)
    return category.strip(), Path(path.strip())


def load_documents(doc_args: list[tuple[str, Path]]) -> list[InputDocument]:
    documents: list[InputDocument] = []
    for category, path in doc_args:
        content = path.read_bytes()
        content_type, _ = mimetypes.guess_type(path.name)
        documents.append(InputDocument.from_upload(path.name, content, content_type, category))
    return documents


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compile regulatory documents into a dossier PDF")
    parser.add_argument("--type", dest="dossier_type", required=True, help="Dossier type (impd, ind, ctd, ectd)")
    parser.add_argument(
        "--doc",
        dest="docs",
        action="append",
        type=_parse_doc_arg,
        default=[],
        help="CATEGORY=PATH; repeat for each document, in order",
    )
    parser.add_argument("--out", type=str, default="out", help="Output directory")
    parser.add_argument(
        "--measured",
        action="store_true",
        help=(
            "Use real PDF page counts instead of size estimates; without it, pages beyond "
            "the estimated span of each PDF are dropped and reported as truncated"
        ),
    )
    parser.add_argument("--plan-only", action="store_true", help="Print the pagination plan and exit")
    return parser


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    args = build_parser().parse_args(argv)

    config = CompileConfig.from_env()
    if args.measured:
        config = config.model_copy(update={"page_count_mode": PageCountMode.MEASURED})

    try:
        documents = load_documents(args.docs)
        if args.plan_only:
            plan = preview_plan(args.dossier_type, documents, config)
            print(plan.model_dump_json(indent=2))
            return 0
        sink = DiskSink(Path(args.out))
        result = compile_dossier(args.dossier_type, documents, config=config, sink=sink)
    except (DossierError, OSError) as exc:
        logger.error(f"Compilation failed: {exc}")
        return 1

    print(json.dumps(result.model_dump(mode="json", exclude={"plan"}), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
