"""
Barcode reconciliation
======================

Sequencing errors fragment the reads of a single barcode over many
low-abundance variants. Reconciliation folds each low-count barcode
("candidate") into the most similar high-count barcode ("endpoint"), if the
two are close enough in edit distance.

Endpoints are determined once, before merging starts. Counts merged into a
candidate never promote it to an endpoint, and an endpoint is never merged
away.
"""

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

import random
import logging
from collections import namedtuple

import numpy
from polyleven import levenshtein

from bcmerge.utils import argmin_all

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD_COUNT = 0
DEFAULT_THRESHOLD_DISTANCE = 1

MergeStats = namedtuple('MergeStats', 'merged unmerged endpoints')


def endpoint_barcodes(table, threshold_count=DEFAULT_THRESHOLD_COUNT):
    """Barcodes with a count strictly above `threshold_count`, in table
    order."""

    return [barcode for barcode, count in table.items()
            if count > threshold_count]


def candidate_barcodes(table, endpoints):
    """
    List the barcodes eligible for merging, with their current counts.

    Parameters
    ----------
    table : dict
        Barcode frequency table
    endpoints : Iterable[str]
        Barcodes that can't be merged

    Returns
    -------
    list
        List of `(barcode, count)` tuples, lowest count first. Barcodes with
        equal counts keep their table order.
    """

    endpoints = set(endpoints)
    candidates = [(barcode, count) for barcode, count in table.items()
                  if barcode not in endpoints]

    return sorted(candidates, key=lambda e: e[1])


def endpoint_distances(barcode, endpoints):
    """Edit distance of `barcode` to each endpoint, as numpy array in the
    same order as `endpoints`."""

    return numpy.fromiter(
        (levenshtein(barcode, endpoint) for endpoint in endpoints),
        dtype=numpy.int64, count=len(endpoints)
    )


def reconcile_barcodes(table, threshold_count=DEFAULT_THRESHOLD_COUNT,
                       threshold_distance=DEFAULT_THRESHOLD_DISTANCE,
                       choose=random.choice, logger=logger):
    """
    Merge low count barcodes into their closest high count barcode.

    Each candidate (count <= `threshold_count`) is processed in order of
    increasing count. It is merged into the endpoint (count >
    `threshold_count`) with the smallest edit distance, provided that
    distance is at most `threshold_distance`. When multiple endpoints share
    the smallest distance, `choose` picks one of them.

    The table is modified in place: merged candidates are removed and their
    counts added to the selected endpoint.

    Parameters
    ----------
    table : dict
        Barcode frequency table
    threshold_count : int
        Barcodes with a count above this value are endpoints.
    threshold_distance : int
        Maximum edit distance (inclusive) for a candidate to be merged.
    choose : Callable[[list], str]
        Selects an endpoint from a list of equally close endpoints. Defaults
        to a uniformly random choice.
    logger : logging.Logger, optional

    Returns
    -------
    tuple
        The reconciled table and a `MergeStats` named tuple.
    """

    if threshold_count < 0:
        raise ValueError("Threshold count should be non-negative, got {}"
                         .format(threshold_count))

    if threshold_distance < 0:
        raise ValueError("Threshold distance should be non-negative, got {}"
                         .format(threshold_distance))

    endpoints = endpoint_barcodes(table, threshold_count)
    logger.debug("%d barcodes pass threshold count", len(endpoints))

    if not endpoints:
        logger.info("No barcodes have counts > %d; merging not performed",
                    threshold_count)
        return table, MergeStats(0, len(table), 0)

    merged = 0
    unmerged = 0
    for barcode, count in candidate_barcodes(table, endpoints):
        logger.debug("Barcode %s count %d <= %d; attempting to merge",
                     barcode, count, threshold_count)

        min_distance, closest = argmin_all(
            endpoint_distances(barcode, endpoints))

        if min_distance > threshold_distance:
            logger.debug("Barcode %s minimum edit distance (%d) is too great; "
                         "not merging", barcode, min_distance)
            unmerged += 1
            continue

        selected = choose([endpoints[i] for i in closest])
        logger.debug("Merging barcode %s (count=%d) into %s (distance is %d)",
                     barcode, count, selected, min_distance)

        table[selected] += count
        del table[barcode]
        merged += 1

    return table, MergeStats(merged, unmerged, len(endpoints))
