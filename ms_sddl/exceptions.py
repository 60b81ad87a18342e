""" Exceptions used within the library """
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


class MsSddlException(Exception):
    """ A parent class for all other exceptions so that users can have a catch-all exception for
    functional issues that still doesn't blind them to things like accidentally providing a string
    where bytes are needed.
    """
    def __init__(self, exception_str):
        self.message = exception_str
        super().__init__(self.message)

    def with_context(self, context: str):
        """ Build an exception of the same type whose message is prefixed with the context of the
        structure that was being processed, so that a failure deep inside a security descriptor
        still names every level it passed through (e.g. "error parsing DACL: error parsing ACE 2: ...").
        Callers raise the result from the original exception to keep the chain.
        """
        return self.__class__('{}: {}'.format(context, self.message))


class SecurityDescriptorDecodeException(MsSddlException):
    """ An exception raised when errors occur decoding a security descriptor, or any of its parts,
    from bytes. This covers truncated data, sizes or counts that disagree with the data available,
    and offsets pointing outside of the security descriptor.
    """
    def __init__(self, exception_str):
        super().__init__(exception_str)


class SecurityDescriptorEncodeException(MsSddlException):
    """ An exception raised when errors occur encoding a security descriptor, or any of its parts,
    to bytes. This covers stored sizes or counts that disagree with the actual contents, values
    that overflow their field in the binary format, and control flags that disagree with the
    presence of an ACL.
    """
    def __init__(self, exception_str):
        super().__init__(exception_str)


class SddlParseException(MsSddlException):
    """ An exception raised when a security descriptor definition language (SDDL) string, or
    part of one, does not follow the grammar.
    """
    def __init__(self, exception_str):
        super().__init__(exception_str)


class InvalidSidException(MsSddlException):
    """ A parent class for errors about the format or value ranges of a security identifier (SID).
    These can be raised when decoding, encoding, parsing or rendering a SID.
    """
    def __init__(self, exception_str):
        super().__init__(exception_str)


class InvalidSidFormatException(InvalidSidException):
    """ An exception raised when a SID string or SID bytes do not have the layout of a SID """
    def __init__(self, exception_str):
        super().__init__(exception_str)


class InvalidSidRevisionException(InvalidSidException):
    """ An exception raised when a SID revision is not a number or is not 1 """
    def __init__(self, exception_str):
        super().__init__(exception_str)


class InvalidAuthorityException(InvalidSidException):
    """ An exception raised when a SID identifier authority is not a number or does not fit
    in 48 bits.
    """
    def __init__(self, exception_str):
        super().__init__(exception_str)


class InvalidSubAuthorityException(InvalidSidException):
    """ An exception raised when a SID sub-authority is not a number or does not fit in 32 bits """
    def __init__(self, exception_str):
        super().__init__(exception_str)


class TooManySubAuthoritiesException(InvalidSidException):
    """ An exception raised when a SID has more than the 15 sub-authorities windows allows """
    def __init__(self, exception_str):
        super().__init__(exception_str)
