""" Security identifiers (SIDs), which name the users, groups and other principals in a security descriptor. """
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

from struct import error as struct_error, pack, unpack_from
from typing import List, Union

from ms_sddl import logging_utils
from ms_sddl.core.structure import Structure, INDENT
from ms_sddl.environment.ldap.ldap_format_utils import escape_bytestring_for_filter
from ms_sddl.environment.security.security_descriptor_constants import (
    HEX_AUTHORITY_THRESHOLD,
    HEX_PREFIX,
    IDENTIFIER_AUTHORITY,
    MAX_IDENTIFIER_AUTHORITY,
    MAX_SUB_AUTHORITIES,
    MAX_SUB_AUTHORITY,
    REVISION,
    SID_HEADER_SIZE,
    SID_REVISION,
    SID_STRING_PREFIX,
    SUB_AUTHORITY,
    SUB_AUTHORITY_COUNT,
    SUB_AUTHORITY_SIZE,
    WellKnownSID,
)
from ms_sddl.environment.security.well_known_tables import (
    DECIMAL_DIGITS_RE,
    HEX_DIGITS_RE,
    canonical_sid_for_alias,
    sid_alias_for,
)
from ms_sddl.exceptions import (
    InvalidAuthorityException,
    InvalidSidFormatException,
    InvalidSidRevisionException,
    InvalidSubAuthorityException,
    TooManySubAuthoritiesException,
)


logger = logging_utils.get_logger()


class ObjectSid(Structure):
    """
    SID as described in 2.4.2
    https://docs.microsoft.com/en-us/openspecs/windows_protocols/ms-dtyp/78eb9013-1c3a-4970-ad1f-2b1dad588a25

    The identifier authority is a 48 bit big endian number, and is stored as an integer. The
    sub-authorities are little endian 32 bit numbers and are stored as a list of integers. The
    sub-authority count is never stored, it's always the length of that list.
    """
    structure = (
        (REVISION, '<B'),
        (SUB_AUTHORITY_COUNT, '<B'),
        (IDENTIFIER_AUTHORITY, '6s'),
    )
    defaults = {
        REVISION: SID_REVISION,
        IDENTIFIER_AUTHORITY: 0,
        SUB_AUTHORITY: [],
    }
    REPR_NAME = 'ObjectSid'

    def parse_structure_from_bytes(self, data: bytes):
        data = data if data is not None else b''
        if len(data) < SID_HEADER_SIZE:
            raise InvalidSidFormatException('a SID must be at least {} bytes long, got {} bytes'
                                            .format(SID_HEADER_SIZE, len(data)))
        header = self.unpack_header(data)
        sub_authority_count = header[SUB_AUTHORITY_COUNT]
        if sub_authority_count > MAX_SUB_AUTHORITIES:
            raise TooManySubAuthoritiesException('got {} sub-authorities, maximum is {}'
                                                 .format(sub_authority_count, MAX_SUB_AUTHORITIES))
        needed_len = SID_HEADER_SIZE + SUB_AUTHORITY_SIZE * sub_authority_count
        if len(data) < needed_len:
            raise InvalidSidFormatException('truncated SID, got {} bytes but need {} bytes for {} sub-authorities'
                                            .format(len(data), needed_len, sub_authority_count))

        self[REVISION] = header[REVISION]
        self[IDENTIFIER_AUTHORITY] = int.from_bytes(header[IDENTIFIER_AUTHORITY], byteorder='big')
        self[SUB_AUTHORITY] = [unpack_from('<L', data, SID_HEADER_SIZE + SUB_AUTHORITY_SIZE * i)[0]
                               for i in range(sub_authority_count)]
        return self

    def get_data(self) -> bytes:
        self.validate()
        sub_authorities = self[SUB_AUTHORITY]
        data = self.pack_header(**{
            SUB_AUTHORITY_COUNT: len(sub_authorities),
            IDENTIFIER_AUTHORITY: self[IDENTIFIER_AUTHORITY].to_bytes(6, byteorder='big'),
        })
        for sub_authority in sub_authorities:
            try:
                data += pack('<L', sub_authority)
            except struct_error:
                raise InvalidSubAuthorityException('sub-authority {!r} does not fit in 32 bits'.format(sub_authority))
        return data

    def validate(self):
        """ Check the invariants of a SID. These are checked whenever a SID is encoded or rendered, not only
        when it's decoded or parsed, since SIDs may be built programmatically.
        """
        if self[REVISION] != SID_REVISION:
            raise InvalidSidRevisionException('revision must be {}, was {}'.format(SID_REVISION, self[REVISION]))
        sub_authorities = self[SUB_AUTHORITY]
        if len(sub_authorities) > MAX_SUB_AUTHORITIES:
            raise TooManySubAuthoritiesException('got {} sub-authorities, maximum is {}'
                                                 .format(len(sub_authorities), MAX_SUB_AUTHORITIES))
        authority = self[IDENTIFIER_AUTHORITY]
        if not 0 <= authority < MAX_IDENTIFIER_AUTHORITY:
            raise InvalidAuthorityException('value {} exceeds maximum of 2^48-1'.format(authority))
        for sub_authority in sub_authorities:
            if not 0 <= sub_authority < MAX_SUB_AUTHORITY:
                raise InvalidSubAuthorityException('sub-authority {} does not fit in 32 bits'.format(sub_authority))

    def from_canonical_string_format(self, canonical: str):
        """ Parse a SID from its canonical S-R-I-S-S... format. The authority may be decimal, or hex
        with a 0x prefix.
        """
        if not canonical:
            raise InvalidSidFormatException('empty SID string')
        if not canonical.startswith(SID_STRING_PREFIX):
            raise InvalidSidFormatException('SID string {!r} must start with {}'.format(canonical, SID_STRING_PREFIX))

        items = canonical[len(SID_STRING_PREFIX):].split('-')
        if len(items) < 2:
            raise InvalidSidFormatException('SID string {!r} must contain a revision and an identifier authority'
                                            .format(canonical))

        revision_str, authority_str, sub_authority_strs = items[0], items[1], items[2:]
        if not DECIMAL_DIGITS_RE.fullmatch(revision_str):
            raise InvalidSidRevisionException('revision {!r} is not a number'.format(revision_str))
        revision = int(revision_str)
        if revision != SID_REVISION:
            raise InvalidSidRevisionException('got {}, want {}'.format(revision, SID_REVISION))

        if authority_str.lower().startswith(HEX_PREFIX):
            hex_digits = authority_str[len(HEX_PREFIX):]
            if not HEX_DIGITS_RE.fullmatch(hex_digits):
                raise InvalidAuthorityException('invalid hex value {!r}'.format(authority_str))
            authority = int(hex_digits, 16)
        elif DECIMAL_DIGITS_RE.fullmatch(authority_str):
            authority = int(authority_str)
        else:
            raise InvalidAuthorityException('invalid decimal value {!r}'.format(authority_str))
        if authority >= MAX_IDENTIFIER_AUTHORITY:
            raise InvalidAuthorityException('value {} exceeds maximum of 2^48-1'.format(authority))

        if len(sub_authority_strs) > MAX_SUB_AUTHORITIES:
            raise TooManySubAuthoritiesException('got {}, maximum is {}'
                                                 .format(len(sub_authority_strs), MAX_SUB_AUTHORITIES))
        sub_authorities = []
        for i, sub_authority_str in enumerate(sub_authority_strs):
            if not DECIMAL_DIGITS_RE.fullmatch(sub_authority_str) or int(sub_authority_str) >= MAX_SUB_AUTHORITY:
                raise InvalidSubAuthorityException('invalid sub-authority {!r} at position {}'
                                                   .format(sub_authority_str, i))
            sub_authorities.append(int(sub_authority_str))

        self[REVISION] = revision
        self[IDENTIFIER_AUTHORITY] = authority
        self[SUB_AUTHORITY] = sub_authorities
        return self

    def to_canonical_string_format(self) -> str:
        """ Render the SID in its canonical S-R-I-S-S... format, never using an alias. Authorities that
        don't fit in 32 bits are rendered in hex.
        """
        self.validate()
        authority = self[IDENTIFIER_AUTHORITY]
        if authority >= HEX_AUTHORITY_THRESHOLD:
            authority_str = '{}{:x}'.format(HEX_PREFIX, authority)
        else:
            authority_str = str(authority)
        ans = '{}{}-{}'.format(SID_STRING_PREFIX, self[REVISION], authority_str)
        for sub_authority in self[SUB_AUTHORITY]:
            ans += '-{}'.format(sub_authority)
        return ans

    def parse_structure_from_sddl_string(self, sddl_string: Union[str, WellKnownSID]):
        """ Parse a SID as it appears in an SDDL string, which may be a well-known alias (e.g. SY)
        or the canonical format. WellKnownSID enums are accepted as well.
        """
        if isinstance(sddl_string, WellKnownSID):
            sddl_string = sddl_string.value
        canonical = canonical_sid_for_alias(sddl_string)
        if canonical is not None:
            logger.debug('Substituting SID %s for alias %s', canonical, sddl_string)
            sddl_string = canonical
        return self.from_canonical_string_format(sddl_string)

    def to_sddl_string(self) -> str:
        """ Render the SID as it appears in an SDDL string, using its alias if it's well-known """
        canonical = self.to_canonical_string_format()
        alias = sid_alias_for(canonical)
        return alias if alias is not None else canonical

    def to_ldap_filter_string_format(self) -> str:
        return escape_bytestring_for_filter(self.get_data())

    def to_indented_string(self, indent: int = 0) -> str:
        return '{}{} (revision={}, authority={}, sub-authorities={})'.format(
            INDENT * indent, self.to_canonical_string_format(), self[REVISION], self[IDENTIFIER_AUTHORITY],
            self[SUB_AUTHORITY])

    @property
    def sub_authorities(self) -> List[int]:
        return list(self[SUB_AUTHORITY])

    def __hash__(self):
        return hash((self[REVISION], self[IDENTIFIER_AUTHORITY], tuple(self[SUB_AUTHORITY])))
