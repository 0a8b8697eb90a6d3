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

import io

import pytest

from bcmerge.collect import collect_barcodes
from bcmerge.extract import BarcodeExtractor
from bcmerge.merge import reconcile_barcodes

READS = [
    "AAAAACGTGG",
    "CCCCACGTGG",
    "AAAAACGTGG",
    "TTTTTTTTTT",
    "AAATACGTGG",
    "AAAAACGTGG",
    "GGGGGGGGGG",
]


@pytest.fixture
def extractor():
    return BarcodeExtractor("^([ACGT]{4})ACGT")


def test_collect_counts(extractor):
    table, unmatched, total = collect_barcodes(READS, extractor)

    assert table == {"AAAA": 3, "CCCC": 1, "AAAT": 1}
    assert unmatched == 2
    assert total == 7


def test_table_in_order_of_first_observation(extractor):
    result = collect_barcodes(READS, extractor)

    assert list(result.table) == ["AAAA", "CCCC", "AAAT"]


def test_unmatched_sink(extractor):
    sink = io.StringIO()
    result = collect_barcodes(READS, extractor, unmatched_sink=sink)

    assert sink.getvalue() == "TTTTTTTTTT\nGGGGGGGGGG\n"
    assert result.unmatched == 2


def test_empty_input(extractor):
    result = collect_barcodes(iter([]), extractor)

    assert result.table == {}
    assert result.unmatched == 0
    assert result.total == 0


def test_conservation_after_reconciliation(extractor):
    table, unmatched, total = collect_barcodes(READS, extractor)
    assert sum(table.values()) + unmatched == total

    table, _ = reconcile_barcodes(table, 1, 1, choose=lambda o: o[0])

    assert table == {"AAAA": 4, "CCCC": 1}
    assert sum(table.values()) + unmatched == total


def test_read_errors_abort_collection(extractor):
    consumed = []

    def reads():
        yield "AAAAACGTGG"
        raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")

    def counting_extractor(read):
        consumed.append(read)
        return extractor(read)

    with pytest.raises(UnicodeDecodeError):
        collect_barcodes(reads(), counting_extractor)

    assert consumed == ["AAAAACGTGG"]
