""" The base class shared by every structure within a security descriptor. """
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

import copy

from struct import calcsize, error as struct_error, pack, unpack_from
from typing import Dict

from ms_sddl.exceptions import (
    SecurityDescriptorDecodeException,
    SecurityDescriptorEncodeException,
)

INDENT = '  '


class Structure(object):
    """ This class is the base for every part of a security descriptor that can be decoded from bytes,
    encoded to bytes, parsed from an SDDL string, or rendered as one.

    Each structure starts with a fixed size header, which is defined by a tuple of field names and
    format specifications in `structure`. The format specifications are the ones used by the python
    struct library, and each one carries its own byte order since windows mixes them (SID authorities
    are big endian while everything else is little endian).
    Whatever follows the header is variable length (SIDs, ACEs, ACLs) and each sub-class decodes and
    encodes that part itself, building on `unpack_header` and `pack_header`.

    Field values live in a dictionary keyed by field name, and the structure supports common dict-like
    operations on them. Two structures are equal when they are the same type and hold the same field
    values, so a structure decoded from bytes compares equal to the one that was encoded.
    """
    structure = ()
    defaults = {}
    REPR_NAME = 'Structure'

    def __init__(self, data: bytes = None):
        # copy our defaults so that mutable defaults (e.g. lists) aren't shared between structures
        self.fields = copy.deepcopy(self.defaults)
        if data is not None:
            self.parse_structure_from_bytes(data)

    @classmethod
    def from_bytes(cls, data: bytes):
        """ Construct a structure by decoding it from bytes """
        return cls().parse_structure_from_bytes(data)

    @classmethod
    def from_sddl_string(cls, sddl_string: str):
        """ Construct a structure by parsing its SDDL string representation """
        return cls().parse_structure_from_sddl_string(sddl_string)

    @classmethod
    def calc_header_size(cls) -> int:
        """ Calculate the size of the fixed header of the structure in bytes """
        return sum(calcsize(format_spec) for _, format_spec in cls.structure)

    def unpack_header(self, data: bytes) -> Dict:
        """ Given data, unpack the fixed header at the start of it according to our structure and return
        a dictionary mapping each header field to its decoded value.
        The caller decides what to keep, since some header fields (like counts) are derived from the
        rest of the structure rather than stored.
        """
        header_size = self.calc_header_size()
        if data is None or len(data) < header_size:
            available = 0 if data is None else len(data)
            raise SecurityDescriptorDecodeException('{} requires at least {} bytes, but only {} bytes are available'
                                                    .format(self.REPR_NAME, header_size, available))
        values = {}
        offset = 0
        for field_name, format_spec in self.structure:
            values[field_name] = unpack_from(format_spec, data, offset)[0]
            offset += calcsize(format_spec)
        return values

    def pack_header(self, **overrides) -> bytes:
        """ Pack the fixed header of the structure. Any fields specified in overrides are packed with the
        value given rather than the value stored, which is used for fields that are computed while
        encoding (e.g. sizes and counts).
        """
        data = bytes()
        for field_name, format_spec in self.structure:
            value = overrides[field_name] if field_name in overrides else self.fields.get(field_name)
            try:
                data += pack(format_spec, value)
            except struct_error as e:
                raise SecurityDescriptorEncodeException("Unable to pack field '{} | {} | {!r}' in {}: {}"
                                                        .format(field_name, format_spec, value, self.REPR_NAME, e))
        return data

    def parse_structure_from_bytes(self, data: bytes):
        """ Given data, decode it into our fields. Sub-classes with variable length data extend this. """
        self.fields.update(self.unpack_header(data))
        return self

    def get_data(self) -> bytes:
        """ Encode our fields into bytes. Sub-classes with variable length data extend this. """
        return self.pack_header()

    def parse_structure_from_sddl_string(self, sddl_string: str):
        raise NotImplementedError('{} cannot be parsed from an SDDL string'.format(self.REPR_NAME))

    def to_sddl_string(self) -> str:
        raise NotImplementedError('{} cannot be rendered as an SDDL string'.format(self.REPR_NAME))

    def to_indented_string(self, indent: int = 0) -> str:
        """ Render every field of the structure on its own line, for debugging """
        lines = ['{}{}:'.format(INDENT * indent, self.REPR_NAME)]
        for field_name, value in self.fields.items():
            lines.append('{}{}: {!r}'.format(INDENT * (indent + 1), field_name, value))
        return '\n'.join(lines)

    def keys(self):
        """ The actual fields of our structure are ordered by `structure`, so this shouldn't be used for
        packing or unpacking data. But supporting common dict-like operations makes it easier to
        programmatically check presence or absence of various keys and values so we support it.
        """
        return self.fields.keys()

    def values(self):
        return self.fields.values()

    def items(self):
        return self.fields.items()

    def __contains__(self, key: str):
        return key in self.fields

    def __delitem__(self, key: str):
        del self.fields[key]

    def __getitem__(self, key: str):
        return self.fields[key]

    def __setitem__(self, key: str, value):
        self.fields[key] = value

    def __len__(self):
        return len(self.get_data())

    def __str__(self):
        return self.to_sddl_string()

    def __eq__(self, other: 'Structure'):
        if not isinstance(other, Structure) or type(other) is not type(self):
            return False
        return other.fields == self.fields

    __hash__ = None

    def __repr__(self):
        return '{}({})'.format(self.REPR_NAME, ', '.join('{}={!r}'.format(k, v) for k, v in self.fields.items()))
