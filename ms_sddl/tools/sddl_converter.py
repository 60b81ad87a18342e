""" A command line tool that converts security descriptors between their base64 encoded binary format and
their SDDL string format, one security descriptor per line of standard input.
"""
# Created in August 2021
#
# Author: Azaria Zornberg
#
# Copyright 2021 - 2021 Azaria Zornberg
#
# This file is part of ms_sddl
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

import argparse
import base64
import binascii
import logging
import sys

from typing import List, TextIO

from ms_sddl import logging_utils
from ms_sddl.core.security_descriptor import SelfRelativeSecurityDescriptor
from ms_sddl.exceptions import MsSddlException


logger = logging_utils.get_logger()

BINARY_FORMAT = 'binary'
STRING_FORMAT = 'string'
FORMATS = [BINARY_FORMAT, STRING_FORMAT]
LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR']
CONSOLE_LOG_FORMAT = '%(levelname)s - %(filename)s - %(funcName)s - %(message)s'


def build_arg_parser() -> argparse.ArgumentParser:
    argsparser = argparse.ArgumentParser(prog='sddl-convert',
                                         description='Convert security descriptors read from standard input, one '
                                                     'per line, between base64 encoded binary and SDDL strings.')
    script_args = argsparser.add_argument_group('Script arguments')
    script_args.add_argument('-i', '--input-format', type=str.lower, action='store', dest='input_format',
                             default=BINARY_FORMAT, choices=FORMATS,
                             help="Input format: 'binary' (base64 encoded) or 'string'. Default: binary")
    script_args.add_argument('-o', '--output-format', type=str.lower, action='store', dest='output_format',
                             default=STRING_FORMAT, choices=FORMATS,
                             help="Output format: 'binary' (base64 encoded) or 'string'. Default: string")
    script_args.add_argument('--debug', action='store_true', dest='debug', default=False,
                             help='Print a detailed, indented breakdown of each security descriptor instead of its '
                                  'SDDL string (only applies to string output)')
    script_args.add_argument('-v', '--verbose', action='store_true', dest='verbose_mode', default=False,
                             help='Enable debug logging to standard error')
    script_args.add_argument('--log-level', type=str.upper, action='store', dest='log_level', default=None,
                             choices=LOG_LEVELS, help='Set the log level of the library logger')
    return argsparser


def parse_input_line(line: str, input_format: str) -> SelfRelativeSecurityDescriptor:
    """ Turn a line of input into a security descriptor. Failures are raised as ValueError with a
    message describing which step failed, so the caller can report them per line.
    """
    if input_format == BINARY_FORMAT:
        try:
            data = base64.b64decode(line, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError('error decoding base64: {}'.format(e)) from e
        try:
            return SelfRelativeSecurityDescriptor.from_bytes(data)
        except MsSddlException as e:
            raise ValueError('error parsing security descriptor: {}'.format(e.message)) from e
    try:
        return SelfRelativeSecurityDescriptor.from_sddl_string(line)
    except MsSddlException as e:
        raise ValueError('error parsing security descriptor string: {}'.format(e.message)) from e


def format_output(security_descriptor: SelfRelativeSecurityDescriptor, output_format: str, debug: bool) -> str:
    try:
        if output_format == BINARY_FORMAT:
            return base64.b64encode(security_descriptor.get_data()).decode('ascii')
        if debug:
            return security_descriptor.to_indented_string(0)
        return security_descriptor.to_sddl_string()
    except MsSddlException as e:
        raise ValueError('error generating {} output: {}'.format(output_format, e.message)) from e


def convert_lines(input_stream: TextIO, output_stream: TextIO, error_stream: TextIO, input_format: str,
                  output_format: str, debug: bool = False) -> int:
    """ Convert every non-blank line of the input stream, writing results to the output stream and
    a diagnostic for each line that fails to the error stream. A failing line never stops the
    conversion, only failing to read the input does.
    Returns the number of lines that failed.
    """
    failures = 0
    for line_num, line in enumerate(input_stream, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            security_descriptor = parse_input_line(line, input_format)
            output = format_output(security_descriptor, output_format, debug)
        except ValueError as e:
            logger.debug('Failed to convert line %s', line_num, exc_info=True)
            error_stream.write('line {}: {}\n'.format(line_num, e))
            failures += 1
            continue
        output_stream.write(output + '\n')
    return failures


def main(argv: List[str] = None, stdin: TextIO = None, stdout: TextIO = None, stderr: TextIO = None) -> int:
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout
    stderr = stderr if stderr is not None else sys.stderr
    args = build_arg_parser().parse_args(argv)

    console_handler = logging.StreamHandler(stderr)
    console_handler.setFormatter(logging.Formatter(CONSOLE_LOG_FORMAT))
    logger.addHandler(console_handler)
    if args.verbose_mode:
        logging_utils.configure_log_level('DEBUG')
    elif args.log_level:
        logging_utils.configure_log_level(args.log_level)

    try:
        failures = convert_lines(stdin, stdout, stderr, args.input_format, args.output_format, debug=args.debug)
        logger.debug('Finished converting input with %s failed lines', failures)
    except (OSError, UnicodeDecodeError) as e:
        stderr.write('error: error reading input: {}\n'.format(e))
        return 1
    finally:
        logger.removeHandler(console_handler)
    return 0


if __name__ == '__main__':
    sys.exit(main())
