"""Command line front-end: ``cbzkit <command> ...``."""

import argparse
import sys
from pathlib import Path

import requests

from .download import (
    DEFAULT_CHAPTERS_LIMIT,
    DEFAULT_MAX_DOWNLOAD_RETRIES,
    DEFAULT_MAX_PARALLEL_DOWNLOAD,
    DEFAULT_SEARCH_LIMIT,
    ArchiveDownload,
    create_session,
    get_chapters,
    get_image_links,
    progress_bar,
    search,
)
from .errors import CbzError, DownloadError
from .image import ReadingOrder
from .index import COUNTER_SIZE
from .log import log_verbose, set_verbosity
from .merge import merge_glob, sanitize_filename
from .pack import DEFAULT_WORKERS, get_images_from_glob, pack_imgs_to_cbz
from .reader import CbzReader
from .reindex import reindex_archive


def print_table(rows, columns):
    """Prints ``rows`` (dicts) as a plain left-aligned table."""
    widths = {
        key: max([len(title)] + [len(str(row.get(key, ""))) for row in rows])
        for key, title in columns
    }
    print("  ".join(title.ljust(widths[key]) for key, title in columns))
    print("  ".join("-" * widths[key] for key, _ in columns))
    for row in rows:
        print("  ".join(str(row.get(key, "")).ljust(widths[key]) for key, _ in columns))


# -----------------------------------------------------------
# commands
# -----------------------------------------------------------
def cmd_pack(args):
    paths = get_images_from_glob(args.files_glob)
    if not paths:
        sys.exit(f"No file matches {args.files_glob}")
    print(f"Packing {len(paths)} images...")

    finished = pack_imgs_to_cbz(
        paths,
        contrast=args.contrast,
        brightness=args.brightness,
        blur=args.blur,
        autosplit=args.autosplit,
        reading_order=args.reading_order,
        workers=args.workers,
    )
    outdir = Path(args.outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    output_path = outdir / sanitize_filename(f"{args.name}.cbz")
    log_verbose(f"  Writing cbz file to {output_path}")
    finished.write_to_path(output_path)
    print(f"CBZ saved → {output_path.name}")


def cmd_merge(args):
    merge_glob(args.archives_glob, args.outdir, args.name)


def cmd_reindex(args):
    reindex_archive(args.archive_path, args.outdir, args.width)


def cmd_list(args):
    with CbzReader.from_path(args.archive) as cbz:
        for cbz_file in cbz:
            print(f"{cbz_file.name}\t{cbz_file.size}")
        log_verbose(f"  {len(cbz)} files")


def cmd_search(args):
    results = search(create_session(), args.title, args.limit)
    print_table(results, [("title", "Title"), ("id", "ID")])


def cmd_chapters(args):
    results = get_chapters(
        create_session(),
        args.manga_id,
        limit=args.limit,
        chapters=args.chapter,
        volumes=args.volume,
        languages=args.language,
    )
    print_table(
        results,
        [
            ("title", "Title"),
            ("id", "ID"),
            ("volume", "Volume"),
            ("chapter", "Chapter"),
            ("language", "Language"),
        ],
    )


def cmd_image_links(args):
    links = get_image_links(create_session(), args.chapter_id)
    print_table([link._asdict() for link in links], [("filename", "Filename"), ("url", "URL")])


def cmd_download(args):
    download = ArchiveDownload(
        args.chapter_id,
        max_parallel_download=args.max_parallel,
        max_download_retries=args.max_retries,
        on_event=progress_bar(),
    )
    cbz_writer = download.request(create_session())
    if cbz_writer.is_empty():
        sys.exit(f"No image could be downloaded for chapter {args.chapter_id}.")

    output_path = Path(args.filename)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    cbz_writer.finish().write_to_path(output_path)
    if download.failed:
        print(f"  Warning: {len(download.failed)} images were skipped.")
    print(f"CBZ saved → {output_path.name}")


# -----------------------------------------------------------
# main
# -----------------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser("cbzkit", description="Create, repair and download CBZ archives.")
    p.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable detailed, step-by-step logging.",
    )
    p.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable highly detailed debug-level logging.",
    )
    sub = p.add_subparsers(dest="command", required=True)

    pack = sub.add_parser("pack", help="Pack image files into a CBZ.")
    pack.add_argument("-f", "--files-glob", required=True, help="A glob that matches all the files to pack")
    pack.add_argument("-o", "--outdir", default="./", help="The output directory for the archive")
    pack.add_argument("-n", "--name", required=True, help="The archive name")
    pack.add_argument("--contrast", type=float, default=None, help="Adjust images contrast (percent)")
    pack.add_argument("--brightness", type=int, default=None, help="Adjust images brightness")
    pack.add_argument("--blur", type=float, default=None, help="Blur image (slow with big numbers)")
    pack.add_argument(
        "--autosplit",
        action="store_true",
        help="Automatically split landscape images into 2 pages",
    )
    pack.add_argument(
        "--reading-order",
        type=ReadingOrder,
        choices=list(ReadingOrder),
        default=ReadingOrder.RTL,
    )
    pack.add_argument("--workers", type=int, default=DEFAULT_WORKERS)
    pack.set_defaults(func=cmd_pack)

    merge = sub.add_parser("merge", help="Merge several CBZ into one.")
    merge.add_argument("-a", "--archives-glob", required=True, help="A glob that matches all the archives to merge")
    merge.add_argument("-o", "--outdir", required=True, help="The output directory for the merged archive")
    merge.add_argument("-n", "--name", required=True, help="The merged archive name")
    merge.set_defaults(func=cmd_merge)

    reindex = sub.add_parser("reindex", help="Repair the page indices of a CBZ.")
    reindex.add_argument("-a", "--archive-path", required=True, help="The archive to update the indices of")
    reindex.add_argument(
        "-o",
        "--outdir",
        required=True,
        help="The output directory for the repaired archive "
        "(must be different than the location of the archive itself)",
    )
    reindex.add_argument("-w", "--width", type=int, default=COUNTER_SIZE, help="Digits of the repaired indices")
    reindex.set_defaults(func=cmd_reindex)

    list_ = sub.add_parser("list", help="List the files of a CBZ, in reading order.")
    list_.add_argument("archive")
    list_.set_defaults(func=cmd_list)

    search_ = sub.add_parser("search", help="Search a manga by title.")
    search_.add_argument("title")
    search_.add_argument("--limit", type=int, default=DEFAULT_SEARCH_LIMIT)
    search_.set_defaults(func=cmd_search)

    chapters = sub.add_parser("chapters", help="List the chapters of a manga.")
    chapters.add_argument("manga_id")
    chapters.add_argument("--limit", type=int, default=DEFAULT_CHAPTERS_LIMIT)
    chapters.add_argument("--chapter", action="append", default=[], help="Chapter number, repeatable")
    chapters.add_argument("--volume", action="append", default=[], help="Volume number, repeatable")
    chapters.add_argument("--language", action="append", default=[], help="Translated language, repeatable")
    chapters.set_defaults(func=cmd_chapters)

    links = sub.add_parser("image-links", help="List the page images of a chapter.")
    links.add_argument("chapter_id")
    links.set_defaults(func=cmd_image_links)

    download = sub.add_parser("download", help="Download a chapter into a CBZ.")
    download.add_argument("chapter_id")
    download.add_argument("--filename", required=True, help="Path of the CBZ to create")
    download.add_argument("--max-parallel", type=int, default=DEFAULT_MAX_PARALLEL_DOWNLOAD)
    download.add_argument("--max-retries", type=int, default=DEFAULT_MAX_DOWNLOAD_RETRIES)
    download.set_defaults(func=cmd_download)

    return p


def main(argv=None):
    args = build_parser().parse_args(argv)
    set_verbosity(args.verbose, args.debug)

    try:
        args.func(args)
    except (CbzError, DownloadError, OSError, requests.exceptions.RequestException) as e:
        sys.exit(f"Error: {e}")


if __name__ == "__main__":
    main()
