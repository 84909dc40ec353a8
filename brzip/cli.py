from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from typing import List, Optional

from brzip.codec import CODEC_BROTLI, codec_names, get_codec
from brzip.constants import DEFAULT_BUFFER_SIZE, EXTENSION
from brzip.errors import BrZipError, MalformedArchiveError
from brzip.events import CallbackListener, EntryEvent
from brzip.pathutil import destination_path
from brzip.reader import ArchiveReader
from brzip.writer import ArchiveWriter


logger = logging.getLogger("brzip")


def _stem(path: str) -> str:
    return os.path.splitext(os.path.basename(os.path.normpath(path)))[0]


def _ratio(length: int, compressed: int) -> float:
    if length <= 0:
        return 100.0
    return compressed * 100.0 / length


def cmd_compress(
    input_path: str,
    output_path: Optional[str] = None,
    *,
    codec: str = CODEC_BROTLI,
    quality: Optional[int] = None,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    append: bool = False,
    quiet: bool = False,
) -> bool:
    """Create (or extend) a .brzip archive from a file or a directory.

    Args:
        input_path: File to store as a single entry, or directory to archive recursively.
        output_path: Archive path. Defaults to ``<input name>.brzip`` in the current directory.
        codec: Codec name ("brotli" or "deflate"); readers must use the same one.
        quality: Codec level/quality; None uses the codec default.
        buffer_size: Chunk size used while reading input files.
        append: Add entries after the ones already in ``output_path``.
        quiet: Only print the summary line.
    """
    input_path = os.path.abspath(input_path)
    if not os.path.exists(input_path):
        raise FileNotFoundError(input_path)
    output_path = os.path.abspath(output_path or (_stem(input_path) + EXTENSION))
    print(f"Input path: {input_path}")
    print(f"Output path: {output_path}")

    totals = {"files": 0, "bytes": 0, "compressed": 0}

    def _added(e: EntryEvent) -> None:
        length = os.path.getsize(e.file_path) if e.file_path else 0
        totals["files"] += 1
        totals["bytes"] += length
        totals["compressed"] += e.compressed_length
        if not quiet:
            print(
                f"File {e.file_path} was added. Length: {length} "
                f"Compressed: {e.compressed_length} Ratio: {_ratio(length, e.compressed_length):.1f} %"
            )

    t0 = time.time()
    listener = CallbackListener(added_entry=_added)
    with ArchiveWriter(
        output_path,
        codec=get_codec(codec, quality),
        buffer_size=buffer_size,
        listener=listener,
        append=append,
    ) as w:
        if os.path.isfile(input_path):
            compressed = w.add_file(input_path)
            # Single files bypass add_directory, report them the same way
            listener.added_entry(EntryEvent(os.path.basename(input_path), compressed, input_path, None))
        else:
            # never archive the archive being written
            w.add_directory(input_path, exclude=lambda fp, _rel: os.path.abspath(fp) == output_path)

    dt = max(0.000001, time.time() - t0)
    mib = totals["bytes"] / (1024.0 * 1024.0)
    print(
        f"Done: {totals['files']} file(s); {mib:.2f} MiB in {dt:.1f}s; "
        f"compressed to {totals['compressed']} bytes ({_ratio(totals['bytes'], totals['compressed']):.1f} %)"
    )
    return True


def cmd_decompress(
    input_path: str,
    output_path: Optional[str] = None,
    *,
    list_only: bool = False,
    codec: str = CODEC_BROTLI,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    quiet: bool = False,
) -> bool:
    """Extract every entry of an archive below ``output_path``.

    Args:
        input_path: Path to a .brzip archive.
        output_path: Destination directory. Defaults to the archive name without extension.
        list_only: Print entry names instead of extracting.
        codec: Codec the archive was written with.
        buffer_size: Extraction chunk size.
        quiet: Do not print one line per extracted entry.
    """
    input_path = os.path.abspath(input_path)
    output_path = os.path.abspath(output_path or _stem(input_path))
    print(f"Input path: {input_path}")
    print(f"Output path: {output_path}")
    with ArchiveReader(input_path, codec=get_codec(codec), buffer_size=buffer_size) as r:
        print(f"Archive has {len(r.entries)} entrie(s).")
        if list_only:
            for name in r.entries:
                print(name)
            return True

        for entry in r.entries.values():
            path = destination_path(output_path, entry.name)
            # One extraction at a time: entries share the reader's stream
            entry.extract_to_async(path).result()
            if not quiet:
                print(f"Written {entry.name} to {path}")
    return True


def cmd_list(archive: str, *, codec: str = CODEC_BROTLI) -> bool:
    """List archive entries with their uncompressed and compressed sizes."""
    with ArchiveReader(archive, codec=get_codec(codec)) as r:
        for entry in r.entries.values():
            print(f"{entry.length}\t{entry.compressed_length}\t{entry.name}")
    return True


def _normalize_argv(argv: List[str]) -> List[str]:
    # Accept the historical "/listonly" switch
    return ["--listonly" if a.lower() == "/listonly" else a for a in argv]


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="brzip",
        description="Create and extract .brzip archives (files compressed individually, Brotli by default).",
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_compress = sub.add_parser("compress", help="Create a .brzip archive from a file or a directory")
    ap_compress.add_argument("input", help="Input file or directory")
    ap_compress.add_argument("output", nargs="?", help="Output archive path (default: <input name>.brzip)")
    ap_compress.add_argument("--codec", choices=codec_names(), default=CODEC_BROTLI, help="Compression codec (default: brotli)")
    ap_compress.add_argument("--quality", type=int, help="Codec quality/level (default: codec default)")
    ap_compress.add_argument("--buffer-size", type=int, default=DEFAULT_BUFFER_SIZE, help="Read chunk size in bytes (default 65536)")
    ap_compress.add_argument("--append", action="store_true", help="Append entries to the output archive (created if missing)")
    ap_compress.add_argument("--quiet", action="store_true", help="limit outputs to summaries only")

    ap_decompress = sub.add_parser("decompress", help="Extract files from a .brzip archive")
    ap_decompress.add_argument("input", help="Archive path")
    ap_decompress.add_argument("output", nargs="?", help="Output directory (default: archive name without extension)")
    ap_decompress.add_argument("--listonly", action="store_true", help="Only list the entry names")
    ap_decompress.add_argument("--codec", choices=codec_names(), default=CODEC_BROTLI, help="Codec the archive was written with")
    ap_decompress.add_argument("--buffer-size", type=int, default=DEFAULT_BUFFER_SIZE, help="Extraction chunk size in bytes")
    ap_decompress.add_argument("--quiet", action="store_true", help="limit outputs to summaries only")

    ap_list = sub.add_parser("list", help="List archive contents with sizes")
    ap_list.add_argument("input", help="Archive path")
    ap_list.add_argument("--codec", choices=codec_names(), default=CODEC_BROTLI, help="Codec the archive was written with")

    args = ap.parse_args(_normalize_argv(list(sys.argv[1:] if argv is None else argv)))
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )
    try:
        if args.cmd == "compress":
            cmd_compress(
                args.input,
                args.output,
                codec=args.codec,
                quality=args.quality,
                buffer_size=args.buffer_size,
                append=args.append,
                quiet=args.quiet,
            )
        elif args.cmd == "decompress":
            cmd_decompress(
                args.input,
                args.output,
                list_only=args.listonly,
                codec=args.codec,
                buffer_size=args.buffer_size,
                quiet=args.quiet,
            )
        elif args.cmd == "list":
            cmd_list(args.input, codec=args.codec)
        else:
            raise RuntimeError("Unknown command")
    except MalformedArchiveError as e:
        print(f"Error: not a valid .brzip archive: {e}", file=sys.stderr)
        sys.exit(2)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except (BrZipError, OSError, ValueError, RuntimeError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
