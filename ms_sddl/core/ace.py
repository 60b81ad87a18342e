""" Access control entries (ACEs), which grant, deny or audit a set of rights for a single trustee SID. """
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

from typing import Union

from ms_sddl import logging_utils
from ms_sddl.core.object_sid import ObjectSid
from ms_sddl.core.structure import Structure, INDENT
from ms_sddl.environment.security.security_descriptor_constants import (
    ACE_AUDIT_FLAG_RENDER_ORDER,
    ACE_AUDIT_FLAG_STR_TO_VALUE,
    ACE_CLOSE,
    ACE_FIELD_COUNT,
    ACE_FIELD_SEPARATOR,
    ACE_FLAGS,
    ACE_HEADER_SIZE,
    ACE_INHERITANCE_FLAG_RENDER_ORDER,
    ACE_INHERITANCE_FLAG_STR_TO_VALUE,
    ACE_OPEN,
    ACE_SIZE,
    ACE_TYPE,
    ACE_TYPE_STR_TO_VALUE,
    ACE_TYPE_VALUE_TO_STR,
    AUDIT_ACE_FLAGS,
    HEX_PREFIX,
    MASK,
    MAX_STRUCTURE_SIZE,
    MIN_ACE_SIZE,
    SID,
    SYSTEM_AUDIT_ACE_TYPE,
    WellKnownSID,
)
from ms_sddl.environment.security.well_known_tables import (
    HEX_DIGITS_RE,
    access_mask_to_string,
    parse_access_mask_string,
)
from ms_sddl.exceptions import (
    InvalidSidException,
    SddlParseException,
    SecurityDescriptorDecodeException,
    SecurityDescriptorEncodeException,
)


logger = logging_utils.get_logger()

ACE_FLAG_CODE_LEN = 2
MAX_ACE_TYPE = 0xFF


class ACE(Structure):
    """
    ACE as described in 2.4.4
    https://msdn.microsoft.com/en-us/library/cc230295.aspx

    Only ACEs whose body is an access mask followed by a SID are supported, which covers the
    allowed, denied, audit and alarm types. The object specific ACE layouts that carry GUIDs
    are not.
    """
    structure = (
        #
        # ACE_HEADER as described in 2.4.4.1
        # https://msdn.microsoft.com/en-us/library/cc230296.aspx
        #
        (ACE_TYPE, '<B'),
        (ACE_FLAGS, '<B'),
        (ACE_SIZE, '<H'),
        (MASK, '<L'),
    )
    defaults = {
        ACE_TYPE: 0,
        ACE_FLAGS: 0,
        ACE_SIZE: MIN_ACE_SIZE,
        MASK: 0,
        SID: None,
    }
    REPR_NAME = 'ACE'

    @classmethod
    def create(cls, ace_type: int, sid: Union[str, WellKnownSID, ObjectSid], access_mask: int, ace_flags: int = 0):
        """ Construct an ACE from its parts, computing its size from the trustee SID.
        The SID may be an ObjectSid, a WellKnownSID, or any string the SDDL SID parser accepts
        (e.g. 'SY' or 'S-1-5-18').
        """
        if not isinstance(sid, ObjectSid):
            sid = ObjectSid.from_sddl_string(sid)
        new_ace = cls()
        new_ace[ACE_TYPE] = ace_type
        new_ace[ACE_FLAGS] = ace_flags
        new_ace[MASK] = access_mask
        new_ace[SID] = sid
        new_ace.recompute_size()
        return new_ace

    def recompute_size(self) -> int:
        """ Set our stored size to the size our header and SID actually encode to. This is needed
        after changing the SID of an ACE by hand, since encoding refuses a stale size.
        """
        self[ACE_SIZE] = ACE_HEADER_SIZE + len(self[SID].get_data())
        return self[ACE_SIZE]

    def parse_structure_from_bytes(self, data: bytes):
        data = data if data is not None else b''
        if len(data) < MIN_ACE_SIZE:
            raise SecurityDescriptorDecodeException('ACE requires at least {} bytes, but only {} bytes are available'
                                                    .format(MIN_ACE_SIZE, len(data)))
        header = self.unpack_header(data)
        declared_size = header[ACE_SIZE]
        if declared_size > len(data):
            raise SecurityDescriptorDecodeException('ACE size {} exceeds available data length {}'
                                                    .format(declared_size, len(data)))
        self.fields.update(header)
        # the SID occupies whatever the declared size leaves after the header
        try:
            self[SID] = ObjectSid.from_bytes(data[ACE_HEADER_SIZE:declared_size])
        except InvalidSidException as e:
            raise e.with_context('error parsing ACE SID') from e
        return self

    def validate_flags(self):
        """ Check that the success and failure audit flags are set only on audit ACEs, and that every
        audit ACE has at least one of them. Checked whenever an ACE is encoded or rendered, since ACEs
        decoded from bytes or built with create() skip the string parser's checks.
        """
        audit_flags = self[ACE_FLAGS] & AUDIT_ACE_FLAGS
        if self[ACE_TYPE] == SYSTEM_AUDIT_ACE_TYPE:
            if not audit_flags:
                raise SecurityDescriptorEncodeException('audit ACE must have at least one of SA or FA flags')
        elif audit_flags:
            raise SecurityDescriptorEncodeException('audit flags 0x{:02X} set on a non-audit ACE of type 0x{:02X}'
                                                    .format(audit_flags, self[ACE_TYPE]))

    def get_data(self) -> bytes:
        if self[SID] is None:
            raise SecurityDescriptorEncodeException('ACE has no SID to encode')
        self.validate_flags()
        try:
            sid_data = self[SID].get_data()
        except InvalidSidException as e:
            raise e.with_context('error encoding ACE SID') from e

        computed_size = ACE_HEADER_SIZE + len(sid_data)
        if computed_size > MAX_STRUCTURE_SIZE:
            raise SecurityDescriptorEncodeException('ACE size {} exceeds maximum of {}'
                                                    .format(computed_size, MAX_STRUCTURE_SIZE))
        if computed_size != self[ACE_SIZE]:
            raise SecurityDescriptorEncodeException('ACE size mismatch: stored {}, computed {}'
                                                    .format(self[ACE_SIZE], computed_size))
        return self.pack_header() + sid_data

    def parse_structure_from_sddl_string(self, sddl_string: str):
        """ Parse an ACE string of the form (type;flags;mask;object_type;inherited_object_type;sid).
        The object type fields must be present but their contents are ignored.
        """
        if not sddl_string or not sddl_string.startswith(ACE_OPEN) or not sddl_string.endswith(ACE_CLOSE):
            raise SddlParseException('ACE string must be enclosed in parentheses: {!r}'.format(sddl_string))

        parts = sddl_string[1:-1].split(ACE_FIELD_SEPARATOR)
        if len(parts) != ACE_FIELD_COUNT:
            raise SddlParseException('invalid ACE string format: expected {} fields, got {}'
                                     .format(ACE_FIELD_COUNT, len(parts)))
        type_str, flags_str, mask_str, _, _, sid_str = parts

        ace_type = self._parse_ace_type(type_str)
        ace_flags = self._parse_ace_flags(flags_str, ace_type)
        access_mask = parse_access_mask_string(mask_str)
        try:
            sid = ObjectSid.from_sddl_string(sid_str)
        except InvalidSidException as e:
            raise e.with_context('error parsing ACE SID') from e

        self[ACE_TYPE] = ace_type
        self[ACE_FLAGS] = ace_flags
        self[MASK] = access_mask
        self[SID] = sid
        self.recompute_size()
        return self

    @staticmethod
    def _parse_ace_type(type_str: str) -> int:
        if type_str in ACE_TYPE_STR_TO_VALUE:
            return ACE_TYPE_STR_TO_VALUE[type_str]
        if type_str.startswith(HEX_PREFIX):
            hex_digits = type_str[len(HEX_PREFIX):]
            if HEX_DIGITS_RE.fullmatch(hex_digits) and int(hex_digits, 16) <= MAX_ACE_TYPE:
                return int(hex_digits, 16)
        raise SddlParseException('invalid ACE type: {}'.format(type_str))

    @staticmethod
    def _parse_ace_flags(flags_str: str, ace_type: int) -> int:
        ace_flags = 0
        is_audit = ace_type == SYSTEM_AUDIT_ACE_TYPE
        for i in range(0, len(flags_str), ACE_FLAG_CODE_LEN):
            flag_code = flags_str[i:i + ACE_FLAG_CODE_LEN]
            if len(flag_code) != ACE_FLAG_CODE_LEN:
                raise SddlParseException('incomplete ACE flag: {}'.format(flag_code))
            if flag_code in ACE_INHERITANCE_FLAG_STR_TO_VALUE:
                ace_flags |= ACE_INHERITANCE_FLAG_STR_TO_VALUE[flag_code]
            elif flag_code in ACE_AUDIT_FLAG_STR_TO_VALUE:
                if not is_audit:
                    raise SddlParseException('audit flag {} used on a non-audit ACE'.format(flag_code))
                ace_flags |= ACE_AUDIT_FLAG_STR_TO_VALUE[flag_code]
            else:
                raise SddlParseException('unknown ACE flag: {}'.format(flag_code))

        if is_audit and not ace_flags & AUDIT_ACE_FLAGS:
            raise SddlParseException('audit ACE must have at least one of SA or FA flags')
        return ace_flags

    def to_sddl_string(self) -> str:
        if self[SID] is None:
            raise SecurityDescriptorEncodeException('ACE has no SID to render')
        self.validate_flags()
        ace_type = self[ACE_TYPE]
        type_str = ACE_TYPE_VALUE_TO_STR.get(ace_type, '{}{:02X}'.format(HEX_PREFIX, ace_type))

        flags_str = ''
        if ace_type == SYSTEM_AUDIT_ACE_TYPE:
            for flag_code in ACE_AUDIT_FLAG_RENDER_ORDER:
                if self.has_flag(ACE_AUDIT_FLAG_STR_TO_VALUE[flag_code]):
                    flags_str += flag_code
        for flag_code in ACE_INHERITANCE_FLAG_RENDER_ORDER:
            if self.has_flag(ACE_INHERITANCE_FLAG_STR_TO_VALUE[flag_code]):
                flags_str += flag_code

        return '{}{};{};{};;;{}{}'.format(ACE_OPEN, type_str, flags_str, access_mask_to_string(self[MASK]),
                                          self[SID].to_sddl_string(), ACE_CLOSE)

    def to_indented_string(self, indent: int = 0) -> str:
        ace_type = self[ACE_TYPE]
        lines = [
            '{}ACE:'.format(INDENT * indent),
            '{}Type: {} (0x{:02X})'.format(INDENT * (indent + 1), ACE_TYPE_VALUE_TO_STR.get(ace_type, 'unknown'),
                                          ace_type),
            '{}Flags: 0x{:02X}'.format(INDENT * (indent + 1), self[ACE_FLAGS]),
            '{}Size: {}'.format(INDENT * (indent + 1), self[ACE_SIZE]),
            '{}AccessMask: 0x{:08X} ({})'.format(INDENT * (indent + 1), self[MASK],
                                                 access_mask_to_string(self[MASK])),
            '{}SID: {}'.format(INDENT * (indent + 1),
                               self[SID].to_sddl_string() if self[SID] is not None else None),
        ]
        return '\n'.join(lines)

    def has_flag(self, flag: int) -> bool:
        return self[ACE_FLAGS] & flag == flag

    def has_privilege(self, privilege: int) -> bool:
        return self[MASK] & privilege == privilege
