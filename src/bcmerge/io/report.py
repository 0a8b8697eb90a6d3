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

import csv
import logging
from collections import Counter

import pandas

logger = logging.getLogger(__name__)

NO_BARCODE_LABEL = "no_barcode"

REPORT_COLUMNS = ("count", "barcode")


def sort_barcodes(table):
    """Barcodes and counts sorted by decreasing count. Barcodes with equal
    counts are sorted alphabetically."""

    return sorted(table.items(), key=lambda e: (-e[1], e[0]))


def write_report(output, table, unmatched, sort=False):
    """
    Write barcode counts as tab separated count and barcode, one barcode per
    line. The last line holds the number of reads without barcode.

    Parameters
    ----------
    output : file object
    table : dict
        Barcode frequency table
    unmatched : int
        Number of reads without barcode
    sort : bool
        Sort barcodes by decreasing count instead of using table order.
    """

    rows = sort_barcodes(table) if sort else table.items()
    for barcode, count in rows:
        print(count, barcode, sep='\t', file=output)

    print(unmatched, NO_BARCODE_LABEL, sep='\t', file=output)


def read_report(path):
    """
    Load a barcode count report written by `write_report`.

    Parameters
    ----------
    path : str or Path
        Report file, optionally compressed

    Returns
    -------
    tuple
        The barcode frequency table (`Counter`, in file order) and the number
        of reads without barcode.
    """

    df = pandas.read_csv(path, sep='\t', header=None,
                         names=list(REPORT_COLUMNS),
                         dtype={'count': 'int64', 'barcode': str},
                         keep_default_na=False,
                         quoting=csv.QUOTE_NONE)

    if df.empty or df['barcode'].iloc[-1] != NO_BARCODE_LABEL:
        raise ValueError("File {} is not a barcode count report: last line "
                         "should contain the '{}' count."
                         .format(path, NO_BARCODE_LABEL))

    unmatched = int(df['count'].iloc[-1])
    df = df.iloc[:-1]

    if (df['count'] < 0).any():
        raise ValueError("File {} contains negative barcode counts."
                         .format(path))

    table = Counter()
    for barcode, count in zip(df['barcode'], df['count']):
        table[barcode] += int(count)

    logger.info("Loaded %d barcodes from %s", len(table), path)

    return table, unmatched
