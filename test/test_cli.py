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
import gzip
import logging

import pytest

from bcmerge.cli.main import bcmerge_cli

READS = (
    ["AAAAACGTGG"] * 5 +
    ["AAATACGTGG"] +
    ["CCCCACGTGG"] * 3 +
    ["TTTTTTTTTT"]
)

REGEX = "^([ACGT]{4})ACGT"


def write_fastq(path, reads):
    with gzip.open(path, "wt") as f:
        for i, read in enumerate(reads):
            print("@read{}".format(i), read, "+", "I" * len(read),
                  sep="\n", file=f)


def run_cli(*argv):
    with pytest.raises(SystemExit) as excinfo:
        bcmerge_cli(list(argv))

    return excinfo.value.code


@pytest.fixture
def fastq(tmp_path):
    path = tmp_path / "reads.fastq.gz"
    write_fastq(path, READS)

    return path


def test_count_and_merge(tmp_path, fastq):
    output = tmp_path / "counts.tsv"
    rc = run_cli("count", REGEX, str(fastq), "-m", "1", "-c",
                 "-o", str(output))

    assert rc == 0
    assert output.read_text() == "6\tAAAA\n3\tCCCC\n1\tno_barcode\n"


def test_count_default_thresholds_do_not_merge(tmp_path, fastq):
    output = tmp_path / "counts.tsv"
    rc = run_cli("count", REGEX, str(fastq), "-o", str(output))

    assert rc == 0
    assert output.read_text() == ("5\tAAAA\n1\tAAAT\n3\tCCCC\n"
                                  "1\tno_barcode\n")


def test_count_to_stdout_with_replacement(capsys, fastq):
    rc = run_cli("count", "^([ACGT]{2})([ACGT]{2})ACGT", str(fastq),
                 "-r", "${2}_${1}", "--no-merge", "-c")

    assert rc == 0
    assert capsys.readouterr().out == ("5\tAA_AA\n3\tCC_CC\n1\tAT_AA\n"
                                       "1\tno_barcode\n")


def test_count_unmatched_file(tmp_path, fastq):
    unmatched = tmp_path / "unmatched.txt"
    rc = run_cli("count", REGEX, str(fastq), "-n", str(unmatched),
                 "-o", str(tmp_path / "counts.tsv"))

    assert rc == 0
    assert unmatched.read_text() == "TTTTTTTTTT\n"


def test_count_invalid_regex(tmp_path, fastq):
    output = tmp_path / "counts.tsv"
    rc = run_cli("count", "([ACGT]{4}", str(fastq), "-o", str(output))

    assert rc == 1
    assert not output.exists()


def test_count_missing_input(tmp_path):
    rc = run_cli("count", REGEX, str(tmp_path / "missing.fastq.gz"))

    assert rc == 1


def test_count_corrupted_input(tmp_path):
    path = tmp_path / "reads.fastq.gz"
    path.write_bytes(b"this is not gzip compressed\n" * 10)

    rc = run_cli("count", REGEX, str(path), "-o", str(tmp_path / "out.tsv"))

    assert rc == 1


def test_count_negative_threshold_rejected(fastq):
    # argparse usage errors exit with status 2
    assert run_cli("count", REGEX, str(fastq), "-m", "-1") == 2


def test_merge_report(tmp_path, fastq):
    raw = tmp_path / "raw.tsv"
    merged = tmp_path / "merged.tsv"

    assert run_cli("count", REGEX, str(fastq), "--no-merge",
                   "-o", str(raw)) == 0
    assert run_cli("merge", str(raw), "-m", "1", "-c", "-o", str(merged)) == 0

    assert merged.read_text() == "6\tAAAA\n3\tCCCC\n1\tno_barcode\n"


def test_merge_invalid_report(tmp_path):
    report = tmp_path / "raw.tsv"
    report.write_text("5\tAAAA\n")

    assert run_cli("merge", str(report)) == 1


def test_no_subcommand_prints_help(capsys):
    assert run_cli() == 1
    assert "count" in capsys.readouterr().out


def test_count_seed_makes_tie_breaks_reproducible(tmp_path):
    # AAAC is one edit away from both AAAA and AACC
    path = tmp_path / "tied.fastq.gz"
    write_fastq(path, ["AAAAACGTGG"] * 5 + ["AACCACGTGG"] * 5 +
                ["AAACACGTGG"])

    outputs = []
    for i in range(5):
        output = tmp_path / "counts{}.tsv".format(i)
        assert run_cli("count", REGEX, str(path), "-m", "1", "-s", "7",
                       "-o", str(output)) == 0
        outputs.append(output.read_text())

    assert len(set(outputs)) == 1
    assert outputs[0] in ("6\tAAAA\n5\tAACC\n1\tno_barcode\n",
                          "5\tAAAA\n6\tAACC\n1\tno_barcode\n")


def test_count_from_stdin(monkeypatch, capsys):
    lines = []
    for i, read in enumerate(READS):
        lines.extend(["@read{}".format(i), read, "+", "I" * len(read)])

    monkeypatch.setattr("sys.stdin", io.StringIO("\n".join(lines) + "\n"))
    rc = run_cli("count", REGEX, "-", "-m", "1", "-c")

    assert rc == 0
    assert capsys.readouterr().out == "6\tAAAA\n3\tCCCC\n1\tno_barcode\n"


def test_count_truncated_gzip(tmp_path):
    path = tmp_path / "reads.fastq.gz"
    write_fastq(path, READS * 50)

    data = path.read_bytes()
    path.write_bytes(data[:len(data) // 2])

    rc = run_cli("count", REGEX, str(path), "-o", str(tmp_path / "out.tsv"))

    assert rc == 1


def log_levels(caplog, *argv):
    caplog.clear()
    run_cli(*argv)

    return {record.levelno for record in caplog.records
            if record.name.startswith("bcmerge")}


def test_verbosity_levels(caplog, tmp_path, fastq):
    output = str(tmp_path / "counts.tsv")

    quiet = log_levels(caplog, "count", REGEX, str(fastq), "-o", output)
    assert logging.INFO not in quiet
    assert logging.DEBUG not in quiet

    info = log_levels(caplog, "-v", "count", REGEX, str(fastq), "-o", output)
    assert logging.INFO in info
    assert logging.DEBUG not in info

    debug = log_levels(caplog, "-vv", "count", REGEX, str(fastq),
                       "-o", output)
    assert logging.DEBUG in debug


def test_logging_levels_restored_after_run(tmp_path, fastq):
    root_level = logging.getLogger().level
    bcmerge_level = logging.getLogger("bcmerge").level

    run_cli("-vv", "count", REGEX, str(fastq), "-o", str(tmp_path / "c.tsv"))

    assert logging.getLogger().level == root_level
    assert logging.getLogger("bcmerge").level == bcmerge_level


def test_no_endpoints_logged(caplog, tmp_path, fastq):
    output = tmp_path / "counts.tsv"
    rc = run_cli("-v", "count", REGEX, str(fastq), "-m", "10",
                 "-o", str(output))

    assert rc == 0
    assert "merging not performed" in caplog.text
    assert output.read_text() == ("5\tAAAA\n1\tAAAT\n3\tCCCC\n"
                                  "1\tno_barcode\n")
