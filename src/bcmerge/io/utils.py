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
import bz2
import gzip
import logging
import itertools
from pathlib import Path
from contextlib import contextmanager, nullcontext

logger = logging.getLogger(__name__)

# FASTQ records span four lines, the sequence is the second one
FASTQ_RECORD_LINES = 4
FASTQ_SEQUENCE_LINE = 1


@contextmanager
def open_compressed(filename):
    """Open a text file for reading, decompressing gzip or bz2 files based on
    their suffix. A filename of "-" reads from standard input."""

    if str(filename) == "-":
        with nullcontext(sys.stdin) as f:
            yield f
        return

    if not isinstance(filename, Path):
        filename = Path(filename)

    logger.debug("Opening %s", filename)
    if filename.suffix == ".gz":
        f = gzip.open(filename, "rt")
    elif filename.suffix == ".bz2":
        f = bz2.open(filename, "rt")
    else:
        f = open(filename)

    with f:
        yield f


def iter_read_sequences(fp):
    """
    Iterate over the read sequences of a FASTQ file.

    No parsing is done, records are assumed to span exactly four lines, and
    the second line of each record is returned.

    Parameters
    ----------
    fp : file object
        Opened FASTQ file

    Yields
    ------
    str
        Read sequence without trailing newline
    """

    lines = itertools.islice(fp, FASTQ_SEQUENCE_LINE, None, FASTQ_RECORD_LINES)
    for line in lines:
        yield line.rstrip("\r\n")
