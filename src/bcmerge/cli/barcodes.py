#  Copyright (c) 2016-2019, Broad Institute, Inc. All rights reserved.
#
#  Redistribution and use in source and binary forms, with or without
#  modification, are permitted provided that the following conditions are met:
#
#  * Redistributions of source code must retain the above copyright notice,
#    this list of conditions and the following disclaimer.
#
#  * Redistributions in binary form must reproduce the above copyright notice,
#    this list of conditions and the following disclaimer in the documentation
#    and/or other materials provided with the distribution.
#
#  * Neither the name Broad Institute, Inc. nor the names of its
#    contributors may be used to endorse or promote products derived from
#    this software without specific prior written permission.
#
#  THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
#  AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
#  IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
#  ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
#  LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
#  CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
#  SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
#  INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
#  CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
#  ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
#  POSSIBILITY OF SUCH DAMAGE.
#

import sys
import random
import logging
import argparse
import contextlib
from pathlib import Path

from bcmerge.cli.registry import Subcommand
from bcmerge.errors import BcmergeError
from bcmerge.extract import BarcodeExtractor, DEFAULT_TEMPLATE
from bcmerge.collect import collect_barcodes
from bcmerge.merge import (reconcile_barcodes, DEFAULT_THRESHOLD_COUNT,
                           DEFAULT_THRESHOLD_DISTANCE)
from bcmerge.io.utils import open_compressed, iter_read_sequences
from bcmerge.io.report import write_report, read_report

logger = logging.getLogger(__name__)


def non_negative_int(value):
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(
            "'{}' should be a non-negative integer".format(value))

    return number


def register_merge_arguments(subparser: argparse.ArgumentParser):
    """Arguments shared by all subcommands that merge barcodes and write a
    barcode count report."""

    subparser.add_argument(
        '-m', '--merge-count', type=non_negative_int, metavar="N",
        default=DEFAULT_THRESHOLD_COUNT,
        help="Barcodes with more than N reads accept merges, barcodes with N "
             "or less reads are merged into them (default: %(default)s)"
    )
    subparser.add_argument(
        '-t', '--threshold-distance', type=non_negative_int, metavar="D",
        default=DEFAULT_THRESHOLD_DISTANCE,
        help="Maximum edit distance for merging a barcode (default: "
             "%(default)s)"
    )
    subparser.add_argument(
        '-c', '--sort', action="store_true", default=False,
        help="Sort returned barcodes by count"
    )
    subparser.add_argument(
        '-s', '--seed', type=int, default=None,
        help="Seed for choosing between equally close barcodes when merging. "
             "Random by default."
    )
    subparser.add_argument(
        '-o', '--output', type=Path, default=None,
        help="Output file (default: standard output)"
    )


def open_output(stack, output):
    if output is None:
        return sys.stdout

    return stack.enter_context(output.open("w"))


def merge_and_report(table, unmatched, output, merge_count,
                     threshold_distance, sort, seed):
    choose = random.Random(seed).choice
    table, stats = reconcile_barcodes(table, merge_count, threshold_distance,
                                      choose=choose, logger=logger)

    if stats.endpoints:
        logger.info("Merged %d barcodes, %d barcodes could not be merged",
                    stats.merged, stats.unmerged)

    logger.info("%d reads assigned a barcode", sum(table.values()))
    logger.info("%d barcodes remain after merging", len(table))

    write_report(output, table, unmatched, sort)


class CountSubcommand(Subcommand):
    """
    Count barcodes in a FASTQ file, merging barcodes likely resulting from
    sequencing errors.

    The barcode label of each read is obtained by searching the read sequence
    with REGEX, and expanding the replacement expression with its capture
    groups: `$1` or `${1}` for a group by number, `${name}` for a named group.
    Reads not matching REGEX are counted as `no_barcode`.

    Barcodes with a count of at most `--merge-count` are then merged into the
    barcode with more reads having the smallest edit distance, if that
    distance is at most `--threshold-distance`.

    Output is a tab separated file with the count and barcode on each line.
    """

    def register_arguments(self, subparser: argparse.ArgumentParser):
        subparser.add_argument(
            'regex', metavar="REGEX",
            help="Search expression"
        )
        subparser.add_argument(
            'fastq', metavar="FILE",
            help="Input FASTQ file, optionally compressed with gz or bz2. Use "
                 "- to read from standard input."
        )
        subparser.add_argument(
            '-r', '--replacement', metavar="EXPR", default=DEFAULT_TEMPLATE,
            help="Replacement expression (default: %(default)s)"
        )
        subparser.add_argument(
            '-n', '--unmatched', type=Path, metavar="FILE", default=None,
            help="Write non-barcoded sequences to file"
        )
        subparser.add_argument(
            '--no-merge', action="store_true", default=False,
            help="Only count barcodes, don't merge them."
        )

        register_merge_arguments(subparser)

    def __call__(self, regex, fastq, output, replacement=DEFAULT_TEMPLATE,
                 unmatched=None, no_merge=False,
                 merge_count=DEFAULT_THRESHOLD_COUNT,
                 threshold_distance=DEFAULT_THRESHOLD_DISTANCE, sort=False,
                 seed=None, **kwargs):
        try:
            extractor = BarcodeExtractor(regex, replacement)
        except BcmergeError as e:
            logger.error("%s", e)
            return 1

        try:
            with contextlib.ExitStack() as stack:
                logger.info("Parsing reads from %s", fastq)
                f = stack.enter_context(open_compressed(fastq))

                unmatched_sink = None
                if unmatched is not None:
                    logger.info("Writing non-barcoded sequences to %s",
                                unmatched)
                    unmatched_sink = stack.enter_context(unmatched.open("w"))

                out = open_output(stack, output)

                result = collect_barcodes(iter_read_sequences(f), extractor,
                                          unmatched_sink, logger=logger)

                if no_merge:
                    write_report(out, result.table, result.unmatched, sort)
                else:
                    merge_and_report(result.table, result.unmatched, out,
                                     merge_count, threshold_distance, sort,
                                     seed)
        except (OSError, EOFError, UnicodeDecodeError) as e:
            logger.error("Could not process %s: %s", fastq, e)
            return 1


class MergeSubcommand(Subcommand):
    """
    Merge barcodes in an existing barcode count report.

    Reads a report written by `bcmerge count` (for example with
    `--no-merge`), and merges barcodes with the same rules as
    `bcmerge count`.
    """

    def register_arguments(self, subparser: argparse.ArgumentParser):
        subparser.add_argument(
            'report', type=Path,
            help="Barcode count report, tab separated count and barcode."
        )

        register_merge_arguments(subparser)

    def __call__(self, report, output, merge_count=DEFAULT_THRESHOLD_COUNT,
                 threshold_distance=DEFAULT_THRESHOLD_DISTANCE, sort=False,
                 seed=None, **kwargs):
        try:
            table, unmatched = read_report(report)

            with contextlib.ExitStack() as stack:
                out = open_output(stack, output)
                merge_and_report(table, unmatched, out, merge_count,
                                 threshold_distance, sort, seed)
        except (OSError, ValueError) as e:
            logger.error("Could not merge barcodes in %s: %s", report, e)
            return 1
