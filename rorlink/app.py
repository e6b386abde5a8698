import argparse
import os
from pathlib import Path

from .env import load_env

from . import __version__
from .logger import get_logger
from .matching.resolver import resolve
from .retry import is_transient_error
from .sources.common import SourceError, fetch, read_text
from .sources.federation import (
    EDUGAIN_METADATA_URL,
    METADATA_FILENAME,
    download_metadata,
    embed_logos,
    federation_to_json,
    load_federation,
)
from .sources.ror import REGISTRY_FILENAME, download_registry, load_registry
from .sources.wikidata import CROSSWALK_FILENAME, download_crosswalk, load_crosswalk
from .storage import save_json, write_results

logger = get_logger()

DFN_AAI_METADATA_URL = "https://www.aai.dfn.de/fileadmin/metadata/dfn-aai-basic-metadata.xml"


def cmd_update_data(args: argparse.Namespace) -> None:
    data_dir = Path(args.data_dir)
    steps = [
        ("ror", lambda: download_registry(data_dir)),
        ("edugain", lambda: download_metadata(data_dir, args.metadata_url)),
        ("wikidata", lambda: download_crosswalk(data_dir)),
    ]
    failed = []
    for source, step in steps:
        try:
            path = step()
            print(f"[ok] {source} -> {path}")
        except ValueError as e:
            hint = " (transient, try again later)" if is_transient_error(e) else ""
            print(f"[error] {source}: {e}{hint}")
            failed.append(source)
    logger.log_metrics_summary()
    if failed:
        raise SystemExit(f"Update failed for: {', '.join(failed)}")


def cmd_match(args: argparse.Namespace) -> None:
    try:
        idps = load_federation(Path(args.federation))
        orgs = load_registry(Path(args.ror))
        crosswalk = load_crosswalk(Path(args.wikidata)) if args.wikidata else []
    except SourceError as e:
        raise SystemExit(str(e))

    report = resolve(idps, orgs, crosswalk)

    logger.info("Results")
    for line in report.summary_lines():
        print(line)

    out_dir = Path(args.out_dir)
    logger.info("Writing results to files...")
    for path in write_results(report, out_dir):
        logger.debug(f"Wrote {path}")

    if args.db:
        from .database import save_report
        edges = save_report(report, Path(args.db))
        logger.info(f"Stored {edges} edges in {args.db}")

    logger.log_metrics_summary()
    logger.info("done.")


def cmd_federation_json(args: argparse.Namespace) -> None:
    source = args.metadata
    if source.startswith("http://") or source.startswith("https://"):
        logger.info(f"Loading federation metadata from {source}.")
        try:
            xml_text = fetch(source, "federation").text
        except ValueError as e:
            raise SystemExit(str(e))
    else:
        try:
            xml_text = read_text(Path(source), "Federation metadata")
        except SourceError as e:
            raise SystemExit(str(e))

    try:
        entries = federation_to_json(xml_text)
    except SourceError as e:
        raise SystemExit(str(e))
    if args.embed_logos:
        logger.info("Requesting IdP logos.")
        entries = embed_logos(entries)

    out_path = Path(args.out)
    logger.info(f"Writing file {out_path}")
    save_json(out_path, entries)


def main():
    # Load .env if present (RORLINK_DATA_DIR, RORLINK_OUT_DIR, etc.)
    load_env()
    data_dir = os.getenv("RORLINK_DATA_DIR", "data")
    out_dir = os.getenv("RORLINK_OUT_DIR", "out")

    parser = argparse.ArgumentParser(prog="rorlink", description="Match federation IdPs to ROR organizations")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")

    subparsers = parser.add_subparsers(dest="command")
    upd = subparsers.add_parser("update-data", help="Download ROR registry, eduGAIN metadata and Wikidata crosswalk")
    upd.add_argument("--data-dir", "-o", default=data_dir, help=f"Directory to store downloaded data (default: {data_dir})")
    upd.add_argument("--metadata-url", default=EDUGAIN_METADATA_URL, help="Federation metadata URL")
    upd.set_defaults(func=cmd_update_data)

    mat = subparsers.add_parser("match", help="Match IdPs to ROR organizations and report scores")
    mat.add_argument("--federation", default=str(Path(data_dir) / METADATA_FILENAME), help="Federation metadata XML")
    mat.add_argument("--ror", default=str(Path(data_dir) / REGISTRY_FILENAME), help="ROR registry JSON dump")
    mat.add_argument("--wikidata", default=str(Path(data_dir) / CROSSWALK_FILENAME), help="Wikidata ROR/API export (empty to skip)")
    mat.add_argument("--out-dir", default=out_dir, help=f"Directory for result files (default: {out_dir})")
    mat.add_argument("--db", help="Also store results in this SQLite database")
    mat.set_defaults(func=cmd_match)

    fed = subparsers.add_parser("federation-json", help="Convert federation metadata to WAYF selector JSON")
    fed.add_argument("--metadata", "-m", default=DFN_AAI_METADATA_URL, help="Metadata URL or file path")
    fed.add_argument("--out", default="dfnaai.json", help="Path to write converted JSON (default: dfnaai.json)")
    fed.add_argument("--embed-logos", "-i", action="store_true", help="Embed logos as base64 data URIs")
    fed.set_defaults(func=cmd_federation_json)

    args = parser.parse_args()

    if args.version:
        print(__version__)
        return

    if args.verbose:
        logger.set_level("DEBUG")
    elif os.getenv("RORLINK_LOG_LEVEL"):
        logger.set_level(os.environ["RORLINK_LOG_LEVEL"])

    if hasattr(args, "func"):
        try:
            args.func(args)
        except Exception as e:
            logger.error(f"{args.command} failed: {e}")
            raise SystemExit(1)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
