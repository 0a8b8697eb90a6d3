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
import logging
import argparse

import bcmerge
from bcmerge.cli.registry import SubcommandRegistry
from bcmerge.cli.barcodes import CountSubcommand, MergeSubcommand

logger = logging.getLogger()

LOG_FORMAT = "%(asctime)s - %(levelname)s:%(name)s:%(message)s"


def configure_logging(verbose=0, stream=None):
    """Log to standard error. The bcmerge loggers only report warnings by
    default, one `-v` enables informational messages, two enable debug
    messages."""

    logger.setLevel(logging.INFO)
    bcmerge_logger = logging.getLogger('bcmerge')
    bcmerge_logger.setLevel(logging.WARNING)

    formatter = logging.Formatter(LOG_FORMAT)
    handler = logging.StreamHandler(stream)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    if verbose > 0:
        bcmerge_logger.setLevel(logging.INFO)

    if verbose > 1:
        logger.setLevel(logging.DEBUG)
        bcmerge_logger.setLevel(logging.DEBUG)

    return handler


class BcmergeCLI(SubcommandRegistry):
    """
    bcmerge main entry point class.

    Collects all available subcommands and builds a argument parser.
    """

    def __init__(self):
        desc = bcmerge.__doc__
        desc += "\n\nVersion: {}".format(bcmerge.__version__)

        super().__init__(description=desc, version=bcmerge.__version__,
                         formatter_class=argparse.RawDescriptionHelpFormatter)

        self.parser.add_argument(
            '-v', '--verbose', action='count', default=0, required=False,
            help="Increase verbosity level, number of levels: 0, 1, 2"
        )

    def __call__(self, argv=None):
        """This is basically our main() function. Setup logging, determine
        which subcommand is called, and run the corresponding `Subcommand`
        instance."""

        # Enable bash auto completion if the package `argcomplete` is installed
        try:
            import argcomplete
            argcomplete.autocomplete(self.parser)
        except ImportError:
            pass

        args = self.parser.parse_args(argv)

        bcmerge_logger = logging.getLogger('bcmerge')
        levels = logger.level, bcmerge_logger.level
        handler = configure_logging(args.verbose)

        try:
            rc = self.run(args)
        finally:
            logger.removeHandler(handler)
            logger.setLevel(levels[0])
            bcmerge_logger.setLevel(levels[1])

        sys.exit(rc)


bcmerge_cli = BcmergeCLI()
bcmerge_cli.register_subcommand('count', subcommand=CountSubcommand())
bcmerge_cli.register_subcommand('merge', subcommand=MergeSubcommand())
