"""
s3functional command line

    s3functional datafiles --dir /data      write the data files
    s3functional checksum FILE -a CRC32C -p 5242880
    s3functional summarize results.log
"""

import sys
from pathlib import Path

import click
import yaml

from s3functional import checksums
from s3functional.checksums import ChecksumAlgorithm
from s3functional.datafiles import DataFiles, write_data_files
from s3functional.errors import S3FunctionalError
from s3functional.reporter import summarize


@click.group()
def main():
    """Helpers for the S3 functional test suite"""


@main.command()
@click.option(
    "--dir",
    "-d",
    "directory",
    type=click.Path(file_okay=False),
    required=True,
    help="Directory to write the data files to (use as S3_DATA_DIR)",
)
@click.option(
    "--name",
    "-n",
    "names",
    multiple=True,
    help="Data file to write (can specify multiple, default all)",
)
def datafiles(directory: str, names):
    """Write the generated data files and a manifest.yaml"""
    reader = DataFiles()
    try:
        manifest = write_data_files(reader, directory, names or None)
    except S3FunctionalError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    manifest_path = Path(directory) / "manifest.yaml"
    with open(manifest_path, "w") as f:
        yaml.safe_dump(manifest, f, sort_keys=True)

    for name, entry in manifest.items():
        click.echo(f"  {name:20} {entry['size']:>12} crc32={entry['crc32']:08x}")
    click.echo(f"Manifest saved to: {manifest_path}")


@main.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--algorithm",
    "-a",
    type=click.Choice([a.value for a in ChecksumAlgorithm], case_sensitive=False),
    default="CRC32C",
    show_default=True,
)
@click.option(
    "--part-size",
    "-p",
    type=int,
    default=5 * 1024 * 1024,
    show_default=True,
    help="Part size in bytes",
)
@click.option(
    "--full-object/--composite",
    default=False,
    help="Full object checksum instead of a composite one",
)
def checksum(path: str, algorithm: str, part_size: int, full_object: bool):
    """Print the checksum a server reports for PATH uploaded in parts"""
    data = Path(path).read_bytes()
    try:
        result = checksums.compose(data, part_size, algorithm, full_object)
    except S3FunctionalError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(result.display_form)


@main.command("summarize")
@click.argument("log", type=click.File("r"))
def summarize_results(log):
    """Summarize a results log written with S3_RESULTS_LOG"""
    s = summarize(log)
    click.echo(f"Tests: {s['total']}, Passed: {s['passed']}, Failed: {s['failed']}, NA: {s['na']}")
    click.echo(f"Pass Rate: {s['pass_rate']:.1f}%")
    click.echo(f"Total Duration: {s['duration'] / 1000:.2f}s")
    for function in s["failures"]:
        click.echo(f"  FAIL {function}")
    if s["failed"]:
        sys.exit(1)


if __name__ == "__main__":
    main()
