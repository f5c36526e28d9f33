from __future__ import annotations

import argparse
import logging
import os
import sys

from dotenv import load_dotenv

from .downloader.segment_downloader import SegmentDownloader
from .models import MasterPlaylist, MediaPlaylist
from .playlist import PlaylistError, encode, loads
from .utils.file_utils import ensure_directory
from .utils.http_client import HttpClient, TransportError
from .utils.url_utils import ResolutionError, playlist_base_url, resolve_reference

load_dotenv()


def _env_str(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return None
    return value


def _env_int(name: str) -> int | None:
    value = _env_str(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _env_bool(name: str) -> bool:
    value = _env_str(name)
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Inspect HLS playlists and download their segments.")
    parser.add_argument("url", nargs="?", default=_env_str("PLAYLIST_URL"), help="Media or master playlist URL")
    parser.add_argument(
        "--download",
        action="store_true",
        default=_env_bool("DOWNLOAD"),
        help="Download the segments instead of only printing a summary",
    )
    parser.add_argument("--output-dir", default=_env_str("OUTPUT_DIR") or "downloads", help="Directory to store the playlist and segments")
    parser.add_argument("--workers", type=int, default=_env_int("WORKERS") or 5, help="Number of concurrent segment download workers")
    parser.add_argument("--retries", type=int, default=_env_int("RETRIES") or 3, help="Attempts per segment before giving up")
    parser.add_argument("--timeout", type=int, default=_env_int("TIMEOUT") or 30, help="HTTP timeout in seconds")
    parser.add_argument(
        "--variant",
        type=int,
        default=_env_int("VARIANT"),
        help="For master playlists: 1-based index of the variant stream to use",
    )
    parser.add_argument(
        "--normalize-output",
        default=_env_str("NORMALIZE_OUTPUT"),
        help="Write the playlist re-encoded in canonical tag order to this file",
    )
    parser.add_argument("--verbose", action="store_true", default=_env_bool("VERBOSE"), help="Enable debug logging")
    return parser.parse_args(argv)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def print_media_summary(playlist: MediaPlaylist) -> None:
    logging.info(
        "Media playlist: %s segments, %ss total, target duration %s, %s",
        len(playlist.segments),
        playlist.total_duration(),
        playlist.target_duration or "-",
        "complete (ENDLIST)" if playlist.endlist else "live (no ENDLIST)",
    )
    for sequence, segment in zip(playlist.sequence_numbers(), playlist.segments):
        logging.debug("  #%s %ss %s", sequence, segment.duration, segment.uri)


def print_variants(playlist: MasterPlaylist) -> None:
    if not playlist.variants:
        logging.info("Master playlist lists no variant streams.")
        return
    logging.info("%-5s | %-12s | %-11s | %s", "Index", "Bandwidth", "Resolution", "URI")
    logging.info("%s", "-" * 70)
    for index, variant in enumerate(playlist.variants, start=1):
        logging.info("%-5s | %-12s | %-11s | %s", index, variant.bandwidth or "-", variant.resolution or "-", variant.uri)


def select_variant(playlist: MasterPlaylist, index: int, master_url: str) -> str:
    """Absolute URL of the 1-based ``index``-th variant stream."""

    if index < 1 or index > len(playlist.variants):
        raise PlaylistError(f"variant {index} does not exist; the playlist has {len(playlist.variants)}")
    return resolve_reference(playlist_base_url(master_url), playlist.variants[index - 1].uri)


def write_normalized(playlist: MediaPlaylist | MasterPlaylist, path: str) -> None:
    ensure_directory(os.path.dirname(os.path.abspath(path)) or ".")
    with open(path, "wb") as handle:
        encode(playlist, handle)
    logging.info("Wrote normalized playlist to %s", path)


def run(args: argparse.Namespace, http_client: HttpClient) -> int:
    playlist_url = args.url
    playlist_text = http_client.fetch_cdn_text(playlist_url)
    playlist = loads(playlist_text, strict=False)
    if args.normalize_output:
        write_normalized(playlist, args.normalize_output)

    if isinstance(playlist, MasterPlaylist):
        print_variants(playlist)
        if args.variant is None:
            if args.download:
                logging.error("%s is a master playlist; pick a stream with --variant", playlist_url)
                return 1
            return 0
        playlist_url = select_variant(playlist, args.variant, playlist_url)
        logging.info("Using variant %s: %s", args.variant, playlist_url)
        playlist_text = http_client.fetch_cdn_text(playlist_url)
        playlist = loads(playlist_text, strict=False)
        if isinstance(playlist, MasterPlaylist):
            logging.error("Variant %s is itself a master playlist", playlist_url)
            return 1

    print_media_summary(playlist)
    if not args.download:
        logging.info("Preview complete. Re-run with --download to fetch the segments.")
        return 0

    downloader = SegmentDownloader(http_client, workers=args.workers, retries=args.retries)
    report = downloader.download(playlist_url, args.output_dir, playlist_text=playlist_text)
    logging.info("Done: %s segments in %s", report.total, os.path.abspath(args.output_dir))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    if not args.url:
        logging.error("A playlist URL is required (argument or PLAYLIST_URL).")
        return 1

    with HttpClient(timeout=args.timeout) as http_client:
        try:
            return run(args, http_client)
        except (PlaylistError, TransportError, ResolutionError, OSError) as exc:
            logging.error("%s", exc)
            return 1


if __name__ == "__main__":
    sys.exit(main())
