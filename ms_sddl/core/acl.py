""" Access control lists (ACLs), the ordered lists of ACEs that make up the DACL and SACL of a security descriptor. """
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

from typing import List

from ms_sddl import logging_utils
from ms_sddl.core.ace import ACE
from ms_sddl.core.structure import Structure, INDENT
from ms_sddl.environment.security.security_descriptor_constants import (
    ACE_CLOSE,
    ACE_COUNT,
    ACE_OPEN,
    ACE_SIZE,
    ACES,
    ACL_FLAG_TO_CONTROL,
    ACL_HEADER_SIZE,
    ACL_ONE_CHAR_FLAGS,
    ACL_REVISION,
    ACL_REVISION_DS,
    ACL_SIZE,
    ACL_TWO_CHAR_FLAGS,
    ACL_TYPE,
    ACL_TYPE_TO_PRESENT_CONTROL,
    CONTROL,
    DACL_TYPE,
    MAX_STRUCTURE_SIZE,
    SACL_TYPE,
    SBZ1,
    SBZ2,
)
from ms_sddl.exceptions import (
    MsSddlException,
    SddlParseException,
    SecurityDescriptorDecodeException,
    SecurityDescriptorEncodeException,
)


logger = logging_utils.get_logger()

ACL_TYPE_SEPARATOR = ':'


class ACL(Structure):
    """
    ACL as described in 2.4.5
    https://msdn.microsoft.com/en-us/library/cc230297.aspx

    The raw bytes of an ACL don't say whether it's a DACL or a SACL, and the flags written after
    'D:' or 'S:' in SDDL live in the control of the security descriptor that holds the ACL. So
    the ACL type and control are supplied by whoever decodes the ACL, and are stored alongside
    the header fields. The control always mirrors the control of the parent security descriptor.
    """
    structure = (
        (ACL_REVISION, '<B'),
        (SBZ1, '<B'),
        (ACL_SIZE, '<H'),
        (ACE_COUNT, '<H'),
        (SBZ2, '<H'),
    )
    defaults = {
        ACL_REVISION: ACL_REVISION_DS,
        SBZ1: 0,
        ACL_SIZE: ACL_HEADER_SIZE,
        ACE_COUNT: 0,
        SBZ2: 0,
        ACL_TYPE: DACL_TYPE,
        CONTROL: 0,
        ACES: [],
    }
    REPR_NAME = 'ACL'

    @classmethod
    def from_bytes(cls, data: bytes, acl_type: str = DACL_TYPE, control: int = 0):
        return cls().parse_structure_from_bytes(data, acl_type=acl_type, control=control)

    @classmethod
    def create(cls, acl_type: str = DACL_TYPE, aces: List[ACE] = None, control: int = None):
        """ Construct an ACL of the given type holding the given ACEs, with its size and count
        computed. If no control is given, only the present flag for the ACL type is set.
        """
        if acl_type not in ACL_TYPE_TO_PRESENT_CONTROL:
            raise SecurityDescriptorEncodeException('invalid ACL type: {!r}, must be one of {}'
                                                    .format(acl_type, ', '.join(ACL_TYPE_TO_PRESENT_CONTROL)))
        new_acl = cls()
        new_acl[ACL_TYPE] = acl_type
        new_acl[CONTROL] = control if control is not None else ACL_TYPE_TO_PRESENT_CONTROL[acl_type]
        new_acl[ACES] = list(aces) if aces else []
        new_acl.recompute_size()
        return new_acl

    @property
    def aces(self) -> List[ACE]:
        return self[ACES]

    def recompute_size(self) -> int:
        """ Set our stored size and ACE count from the ACEs we actually hold """
        self[ACE_COUNT] = len(self[ACES])
        self[ACL_SIZE] = ACL_HEADER_SIZE + sum(ace[ACE_SIZE] for ace in self[ACES])
        return self[ACL_SIZE]

    def parse_structure_from_bytes(self, data: bytes, acl_type: str = DACL_TYPE, control: int = 0):
        header = self.unpack_header(data)
        acl_size = header[ACL_SIZE]
        ace_count = header[ACE_COUNT]
        if acl_size > len(data):
            raise SecurityDescriptorDecodeException('AclSize {} exceeds available data length {}'
                                                    .format(acl_size, len(data)))
        logger.debug('Decoding %s ACL of size %s with %s ACEs', acl_type, acl_size, ace_count)

        aces = []
        offset = ACL_HEADER_SIZE
        for i in range(ace_count):
            if offset >= acl_size:
                raise SecurityDescriptorDecodeException('ACE {} offset {} exceeds AclSize {}'
                                                        .format(i, offset, acl_size))
            try:
                ace = ACE.from_bytes(data[offset:acl_size])
            except MsSddlException as e:
                raise e.with_context('error parsing ACE {}'.format(i)) from e
            aces.append(ace)
            offset += ace[ACE_SIZE]

        self.fields.update(header)
        self[ACL_TYPE] = acl_type
        self[CONTROL] = control
        self[ACES] = aces
        return self

    def get_data(self) -> bytes:
        ace_data = b''
        for i, ace in enumerate(self[ACES]):
            try:
                ace_data += ace.get_data()
            except MsSddlException as e:
                raise e.with_context('error encoding ACE {}'.format(i)) from e

        computed_size = ACL_HEADER_SIZE + len(ace_data)
        if computed_size > MAX_STRUCTURE_SIZE:
            raise SecurityDescriptorEncodeException('ACL size {} exceeds maximum of {}'
                                                    .format(computed_size, MAX_STRUCTURE_SIZE))
        if computed_size != self[ACL_SIZE]:
            raise SecurityDescriptorEncodeException('ACL size mismatch: stored {}, computed {}'
                                                    .format(self[ACL_SIZE], computed_size))
        if len(self[ACES]) != self[ACE_COUNT]:
            raise SecurityDescriptorEncodeException('ACE count mismatch: stored {}, actual {}'
                                                    .format(self[ACE_COUNT], len(self[ACES])))
        return self.pack_header() + ace_data

    def parse_structure_from_sddl_string(self, sddl_string: str):
        """ Parse an ACL string such as 'D:PAI(A;;FA;;;SY)(A;;FR;;;WD)'. The flags between the
        type prefix and the first ACE set control flags on the ACL.
        """
        if not sddl_string:
            raise SddlParseException('empty ACL string')
        if len(sddl_string) < 2 or sddl_string[1] != ACL_TYPE_SEPARATOR:
            raise SddlParseException("invalid ACL string format: must start with 'D:' or 'S:'")
        acl_type = sddl_string[0]
        if acl_type not in (DACL_TYPE, SACL_TYPE):
            raise SddlParseException("invalid ACL type: must start with 'D:' or 'S:'")

        control = ACL_TYPE_TO_PRESENT_CONTROL[acl_type]
        remaining = sddl_string[2:]
        flags_end = remaining.find(ACE_OPEN)
        if flags_end == -1:
            if ACE_CLOSE in remaining:
                raise SddlParseException('invalid ACL format: missing opening parenthesis')
            flags_end = len(remaining)
        for flag in self._split_acl_flags(remaining[:flags_end]):
            # NO and IO have no control flag, so they're accepted and dropped
            control |= ACL_FLAG_TO_CONTROL[acl_type].get(flag, 0)

        aces = []
        remaining = remaining[flags_end:]
        while remaining:
            if not remaining.startswith(ACE_OPEN):
                raise SddlParseException("invalid ACE format: expected '{}' but got {!r}"
                                         .format(ACE_OPEN, remaining[0]))
            close_pos = remaining.find(ACE_CLOSE)
            if close_pos == -1:
                raise SddlParseException('invalid ACE format: missing closing parenthesis')
            ace_str = remaining[:close_pos + 1]
            try:
                aces.append(ACE.from_sddl_string(ace_str))
            except MsSddlException as e:
                raise e.with_context('error parsing ACE {!r}'.format(ace_str)) from e
            remaining = remaining[close_pos + 1:]

        self[ACL_REVISION] = ACL_REVISION_DS
        self[SBZ1] = 0
        self[SBZ2] = 0
        self[ACL_TYPE] = acl_type
        self[CONTROL] = control
        self[ACES] = aces
        self.recompute_size()
        return self

    @staticmethod
    def _split_acl_flags(flags_str: str) -> List[str]:
        """ Split a run of ACL flags (e.g. 'PAI') into the individual flags. Two character flags
        are matched before single character ones.
        """
        flags = []
        i = 0
        while i < len(flags_str):
            if flags_str[i:i + 2] in ACL_TWO_CHAR_FLAGS:
                flags.append(flags_str[i:i + 2])
                i += 2
            elif flags_str[i] in ACL_ONE_CHAR_FLAGS:
                flags.append(flags_str[i])
                i += 1
            else:
                raise SddlParseException('error parsing flags: invalid flag: {!r}'.format(flags_str[i]))
        return flags

    def to_sddl_string(self) -> str:
        acl_type = self[ACL_TYPE]
        if acl_type not in (DACL_TYPE, SACL_TYPE):
            raise SecurityDescriptorEncodeException('invalid ACL type: {!r}'.format(acl_type))
        ans = acl_type + ACL_TYPE_SEPARATOR
        for flag, control_flag in ACL_FLAG_TO_CONTROL[acl_type].items():
            if self[CONTROL] & control_flag:
                ans += flag
        for ace in self[ACES]:
            ans += ace.to_sddl_string()
        return ans

    def to_indented_string(self, indent: int = 0) -> str:
        lines = [
            '{}{}ACL:'.format(INDENT * indent, self[ACL_TYPE]),
            '{}Revision: {}'.format(INDENT * (indent + 1), self[ACL_REVISION]),
            '{}Size: {}'.format(INDENT * (indent + 1), self[ACL_SIZE]),
            '{}AceCount: {}'.format(INDENT * (indent + 1), self[ACE_COUNT]),
        ]
        for ace in self[ACES]:
            lines.append(ace.to_indented_string(indent + 1))
        return '\n'.join(lines)

    def append_ace(self, new_ace: ACE):
        self[ACES].append(new_ace)
        self.recompute_size()

    def append_aces(self, new_aces: List[ACE]):
        self[ACES].extend(new_aces)
        self.recompute_size()

    def prepend_ace(self, new_ace: ACE):
        self[ACES] = [new_ace] + self[ACES]
        self.recompute_size()

    def prepend_aces(self, new_aces: List[ACE]):
        self[ACES] = list(new_aces) + self[ACES]
        self.recompute_size()
