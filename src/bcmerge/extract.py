"""
Barcode extraction
==================

A barcode is extracted from a read by searching it with a regular expression,
and expanding a replacement template with the captured groups.

The template syntax is the one used by ``sed``-like tools in other
languages: ``$1`` or ``${1}`` refer to a group by number, ``$name`` or
``${name}`` to a named group, and ``$$`` is a literal dollar sign.
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

import re
import logging

from bcmerge.errors import InvalidPatternError

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = "${1}"

TEMPLATE_REF_RE = re.compile(r"\$(?:(\$)|\{([^}]+)\}|([A-Za-z0-9_]+))")
DIGITS_RE = re.compile(r"[0-9]+")


def compile_pattern(pattern):
    """Compile the barcode search expression.

    Raises
    ------
    InvalidPatternError
        If `pattern` is not a valid regular expression.
    """

    try:
        return re.compile(pattern)
    except re.error as e:
        raise InvalidPatternError(pattern, e) from e


def parse_template(template):
    """
    Split a replacement template in literal text and group references.

    Parameters
    ----------
    template : str
        The replacement template, e.g. ``"${1}_${umi}"``

    Returns
    -------
    list
        Each item is either a `str` with literal text, or a tuple
        ``(ref, )`` where `ref` is a group number (`int`) or group name
        (`str`).
    """

    parts = []
    pos = 0
    for m in TEMPLATE_REF_RE.finditer(template):
        if m.start() > pos:
            parts.append(template[pos:m.start()])

        dollar, braced, bare = m.groups()
        if dollar:
            parts.append("$")
        else:
            name = braced if braced is not None else bare
            if DIGITS_RE.fullmatch(name):
                name = int(name)
            parts.append((name, ))

        pos = m.end()

    if pos < len(template):
        parts.append(template[pos:])

    return parts


class BarcodeExtractor(object):
    """
    Extracts barcode labels from reads.

    The search expression is compiled on construction, so an invalid pattern
    is reported before any read is processed. Calling the extractor with a
    read returns the expanded barcode label, or None when the expression does
    not match.
    """

    def __init__(self, pattern, template=DEFAULT_TEMPLATE):
        logger.debug("Building barcode regular expression")
        logger.debug("Barcode regular expression is %s", pattern)

        self.regex = compile_pattern(pattern)
        self.template = template
        self.parts = parse_template(template)

    def expand(self, match):
        """Expand the replacement template with the groups of `match`.
        Groups that do not exist or did not participate in the match expand
        to an empty string."""

        label = []
        for part in self.parts:
            if isinstance(part, str):
                label.append(part)
                continue

            ref = part[0]
            if isinstance(ref, int):
                valid = ref <= self.regex.groups
            else:
                valid = ref in self.regex.groupindex

            if valid:
                label.append(match.group(ref) or "")

        return "".join(label)

    def __call__(self, read):
        match = self.regex.search(read)
        if match is None:
            return None

        return self.expand(match)
