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

import logging
from collections import Counter, namedtuple

from bcmerge.utils import pct

logger = logging.getLogger(__name__)

CollectionResult = namedtuple('CollectionResult', 'table unmatched total')


def collect_barcodes(observations, extractor, unmatched_sink=None,
                     logger=logger):
    """
    Count the barcode labels extracted from a sequence of observations.

    Observations are consumed strictly in order. Any exception raised while
    iterating over `observations` (e.g. a read that can't be decoded) is
    propagated, aborting the collection.

    Parameters
    ----------
    observations : Iterable[str]
        Read sequences to extract barcodes from
    extractor : Callable[[str], Optional[str]]
        Returns the barcode label for a read, or None if the read does not
        contain a barcode. See `bcmerge.extract.BarcodeExtractor`.
    unmatched_sink : file object, optional
        If given, reads without barcode are written here, one per line.
    logger : logging.Logger, optional

    Returns
    -------
    CollectionResult
        Named tuple with the barcode frequency table (`Counter`, in order of
        first observation), the number of reads without barcode, and the
        total number of reads.
    """

    table = Counter()
    unmatched = 0
    total = 0

    logger.debug("Processing reads")
    for read in observations:
        label = extractor(read)

        if label is not None:
            logger.debug("Read %s barcode label is %s", read, label)
            table[label] += 1
        else:
            logger.debug("No barcode detected in read %s", read)
            if unmatched_sink is not None:
                print(read, file=unmatched_sink)

            unmatched += 1

        total += 1

    logger.info("Processed %d reads", total)
    logger.info("%d/%d (%.2f%%) reads did not match barcode", unmatched,
                total, pct(unmatched, total))
    logger.info("%d barcodes detected", len(table))

    return CollectionResult(table, unmatched, total)
