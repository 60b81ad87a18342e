""" Self-relative security descriptors, which hold the owner, group, DACL and SACL of a securable object. """
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

from typing import List, Union

from ms_sddl import logging_utils
from ms_sddl.core.acl import ACL
from ms_sddl.core.object_sid import ObjectSid
from ms_sddl.core.structure import Structure, INDENT
from ms_sddl.environment.security.security_descriptor_constants import (
    ACL_INHERITANCE_CONTROL_FLAGS,
    ACL_TYPE_TO_DEFAULTED_CONTROL,
    ACL_TYPE_TO_PRESENT_CONTROL,
    CONTROL,
    CONTROL_FLAG_NAMES,
    DACL,
    DACL_PREFIX,
    DACL_TYPE,
    GROUP_PREFIX,
    GROUP_SID,
    OFFSET_DACL,
    OFFSET_GROUP,
    OFFSET_OWNER,
    OFFSET_SACL,
    OWNER_PREFIX,
    OWNER_SID,
    REVISION,
    SACL,
    SACL_PREFIX,
    SACL_TYPE,
    SBZ1,
    SDDL_STRING_INITIAL_CONTROL,
    SE_GROUP_DEFAULTED,
    SE_OWNER_DEFAULTED,
    SE_SELF_RELATIVE,
    SECURITY_DESCRIPTOR_COMPONENT_PREFIXES,
    SECURITY_DESCRIPTOR_HEADER_SIZE,
    SECURITY_DESCRIPTOR_REVISION,
)
from ms_sddl.exceptions import (
    MsSddlException,
    SddlParseException,
    SecurityDescriptorDecodeException,
    SecurityDescriptorEncodeException,
)


logger = logging_utils.get_logger()

# the components of a security descriptor in the order they're decoded, encoded and rendered
# (field, offset field, name used in errors)
SID_COMPONENTS = [
    (OWNER_SID, OFFSET_OWNER, 'owner'),
    (GROUP_SID, OFFSET_GROUP, 'group'),
]
ACL_COMPONENTS = [
    (SACL, OFFSET_SACL, SACL_TYPE),
    (DACL, OFFSET_DACL, DACL_TYPE),
]


def control_flag_names(control: int) -> List[str]:
    """ Get the names of the control flags set in a security descriptor control, lowest bit first """
    return [name for flag, name in sorted(CONTROL_FLAG_NAMES.items()) if control & flag]


class SelfRelativeSecurityDescriptor(Structure):
    """
    Self-relative security descriptor as described in 2.4.6
    Class renamed to match python naming conventions.
    https://msdn.microsoft.com/en-us/library/cc230366.aspx

    The owner, group, SACL and DACL are all optional, and are None when absent. When decoding,
    the offsets alone decide which are present. When encoding, the SACL and DACL present control
    flags must agree with which ACLs we actually hold.
    """
    structure = (
        (REVISION, '<B'),
        (SBZ1, '<B'),
        (CONTROL, '<H'),
        (OFFSET_OWNER, '<L'),
        (OFFSET_GROUP, '<L'),
        (OFFSET_SACL, '<L'),
        (OFFSET_DACL, '<L'),
    )
    defaults = {
        REVISION: SECURITY_DESCRIPTOR_REVISION,
        SBZ1: 0,
        CONTROL: SE_SELF_RELATIVE,
        OFFSET_OWNER: 0,
        OFFSET_GROUP: 0,
        OFFSET_SACL: 0,
        OFFSET_DACL: 0,
        OWNER_SID: None,
        GROUP_SID: None,
        SACL: None,
        DACL: None,
    }
    REPR_NAME = 'SelfRelativeSecurityDescriptor'

    @classmethod
    def create(cls, owner: Union[str, ObjectSid] = None, group: Union[str, ObjectSid] = None, dacl: ACL = None,
               sacl: ACL = None, control: int = 0):
        """ Construct a security descriptor from its parts. The present flags for the ACLs given are set
        in addition to whatever control flags are passed in, and the ACLs take on the resulting control.
        """
        new_sd = cls()
        control |= SE_SELF_RELATIVE
        for field, sid in [(OWNER_SID, owner), (GROUP_SID, group)]:
            if sid is not None and not isinstance(sid, ObjectSid):
                sid = ObjectSid.from_sddl_string(sid)
            new_sd[field] = sid
        for field, acl_type, acl in [(SACL, SACL_TYPE, sacl), (DACL, DACL_TYPE, dacl)]:
            if acl is not None:
                control |= ACL_TYPE_TO_PRESENT_CONTROL[acl_type]
            new_sd[field] = acl
        new_sd[CONTROL] = control
        new_sd.sync_acl_controls()
        return new_sd

    def sync_acl_controls(self):
        """ Make the control of each ACL we hold mirror our own control """
        for field, _, _ in ACL_COMPONENTS:
            if self[field] is not None:
                self[field][CONTROL] = self[CONTROL]

    def has_control_flag(self, flag: int) -> bool:
        return self[CONTROL] & flag == flag

    def parse_structure_from_bytes(self, data: bytes):
        data = data if data is not None else b''
        if len(data) < SECURITY_DESCRIPTOR_HEADER_SIZE:
            raise SecurityDescriptorDecodeException('invalid security descriptor: it must be at least {} bytes long, '
                                                    'got {} bytes'.format(SECURITY_DESCRIPTOR_HEADER_SIZE, len(data)))
        header = self.unpack_header(data)
        data_len = len(data)
        for name, offset_field in [('Owner', OFFSET_OWNER), ('Group', OFFSET_GROUP), ('SACL', OFFSET_SACL),
                                   ('DACL', OFFSET_DACL)]:
            offset = header[offset_field]
            if offset != 0 and offset >= data_len:
                raise SecurityDescriptorDecodeException('invalid security descriptor: {} offset 0x{:x} exceeds data '
                                                        'length 0x{:x}'.format(name, offset, data_len))
        self.fields.update(header)
        control = header[CONTROL]
        logger.debug('Decoding security descriptor of %s bytes with control 0x%04X', data_len, control)

        # All these fields are optional, if the offset is 0 they are empty.
        # there are also flags indicating if the ACLs are present, but the offsets are what we trust
        for field, offset_field, name in SID_COMPONENTS:
            offset = header[offset_field]
            self[field] = None
            if offset != 0:
                try:
                    self[field] = ObjectSid.from_bytes(data[offset:])
                except MsSddlException as e:
                    raise e.with_context('error parsing {} SID'.format(name)) from e

        for field, offset_field, acl_type in ACL_COMPONENTS:
            offset = header[offset_field]
            self[field] = None
            if offset != 0:
                try:
                    self[field] = ACL.from_bytes(data[offset:], acl_type=acl_type, control=control)
                except MsSddlException as e:
                    raise e.with_context('error parsing {}'.format(field.upper())) from e
        return self

    def get_data(self) -> bytes:
        # we only ever produce the self-relative format
        self[CONTROL] |= SE_SELF_RELATIVE
        for field, _, acl_type in ACL_COMPONENTS:
            present_flag = ACL_TYPE_TO_PRESENT_CONTROL[acl_type]
            if self[field] is not None and not self.has_control_flag(present_flag):
                raise SecurityDescriptorEncodeException('{} is present but {} is not set in control'
                                                        .format(field.upper(), CONTROL_FLAG_NAMES[present_flag]))
            if self[field] is None and self.has_control_flag(present_flag):
                raise SecurityDescriptorEncodeException('{} is set in control but no {} is present'
                                                        .format(CONTROL_FLAG_NAMES[present_flag], field.upper()))
        self.sync_acl_controls()

        component_data = b''
        for field, offset_field, name in SID_COMPONENTS + ACL_COMPONENTS:
            if self[field] is None:
                self[offset_field] = 0
                continue
            try:
                sub_data = self[field].get_data()
            except MsSddlException as e:
                context = '{} SID'.format(name) if field in (OWNER_SID, GROUP_SID) else field.upper()
                raise e.with_context('error encoding {}'.format(context)) from e
            self[offset_field] = SECURITY_DESCRIPTOR_HEADER_SIZE + len(component_data)
            component_data += sub_data
        logger.debug('Encoded security descriptor with %s bytes after the header', len(component_data))
        return self.pack_header() + component_data

    def parse_structure_from_sddl_string(self, sddl_string: str):
        """ Parse a security descriptor string such as 'O:SYG:BAD:PAI(A;;FA;;;SY)'.
        The owner, group, DACL and SACL may appear in any order, at most once each, and any of
        them may be omitted. Whatever isn't specified is marked as defaulted in our control. An
        empty string is a valid security descriptor with nothing specified.
        """
        if sddl_string is None:
            raise SddlParseException('security descriptor string must not be None')
        control = SDDL_STRING_INITIAL_CONTROL
        components = {OWNER_SID: None, GROUP_SID: None, SACL: None, DACL: None}
        pending = list(SECURITY_DESCRIPTOR_COMPONENT_PREFIXES)

        remaining = sddl_string
        if remaining and self._find_next_component(remaining, pending) == -1:
            raise SddlParseException('no components found in security descriptor')

        # every pass consumes one pending component, so this runs at most 4 times
        while remaining:
            component_start = self._find_next_component(remaining, pending)
            if component_start == -1:
                raise SddlParseException('unexpected content after parsing: {}'.format(remaining))
            if component_start > 0:
                raise SddlParseException('unexpected content before {}: {}'
                                         .format(remaining[component_start:component_start + 2],
                                                 remaining[:component_start]))
            prefix = remaining[:len(OWNER_PREFIX)]
            pending.remove(prefix)
            payload_end = self._find_next_component(remaining[len(prefix):], pending)
            payload_end = len(remaining) if payload_end == -1 else payload_end + len(prefix)
            payload = remaining[:payload_end]
            remaining = remaining[payload_end:]
            logger.debug('Found security descriptor component %s', payload)

            if prefix in (OWNER_PREFIX, GROUP_PREFIX):
                field, name, defaulted_flag = ((OWNER_SID, 'owner', SE_OWNER_DEFAULTED) if prefix == OWNER_PREFIX
                                               else (GROUP_SID, 'group', SE_GROUP_DEFAULTED))
                try:
                    components[field] = ObjectSid.from_sddl_string(payload[len(prefix):])
                except MsSddlException as e:
                    raise e.with_context('error parsing {} SID'.format(name)) from e
                control &= ~defaulted_flag
            else:
                field, acl_type = (DACL, DACL_TYPE) if prefix == DACL_PREFIX else (SACL, SACL_TYPE)
                try:
                    acl = ACL.from_sddl_string(payload)
                except MsSddlException as e:
                    raise e.with_context('error parsing {}'.format(field.upper())) from e
                components[field] = acl
                control &= ~ACL_TYPE_TO_DEFAULTED_CONTROL[acl_type]
                control |= ACL_TYPE_TO_PRESENT_CONTROL[acl_type]
                control |= acl[CONTROL] & ACL_INHERITANCE_CONTROL_FLAGS[acl_type]

        self.fields.update(self.defaults)
        self.fields.update(components)
        self[CONTROL] = control
        # the ACLs mirror the final control, now that every component has contributed to it
        self.sync_acl_controls()
        return self

    @staticmethod
    def _find_next_component(sddl_string: str, prefixes: List[str]) -> int:
        """ Find the earliest position of any of the given component prefixes, or -1 if there are none """
        positions = [sddl_string.find(prefix) for prefix in prefixes]
        positions = [position for position in positions if position != -1]
        return min(positions) if positions else -1

    def to_sddl_string(self) -> str:
        ans = ''
        for field, _, name in SID_COMPONENTS:
            if self[field] is not None:
                prefix = OWNER_PREFIX if field == OWNER_SID else GROUP_PREFIX
                try:
                    ans += prefix + self[field].to_sddl_string()
                except MsSddlException as e:
                    raise e.with_context('error rendering {} SID'.format(name)) from e
        for field in (DACL, SACL):
            if self[field] is not None:
                try:
                    ans += self[field].to_sddl_string()
                except MsSddlException as e:
                    raise e.with_context('error rendering {}'.format(field.upper())) from e
        return ans

    def to_indented_string(self, indent: int = 0) -> str:
        lines = [
            '{}SecurityDescriptor:'.format(INDENT * indent),
            '{}Revision: {}'.format(INDENT * (indent + 1), self[REVISION]),
            '{}Control: 0x{:04X} ({})'.format(INDENT * (indent + 1), self[CONTROL],
                                              ' | '.join(control_flag_names(self[CONTROL]))),
        ]
        for field, offset_field, name in SID_COMPONENTS:
            if self[field] is not None:
                lines.append('{}{}: {} (offset {})'.format(INDENT * (indent + 1), name.capitalize(),
                                                          self[field].to_sddl_string(), self[offset_field]))
        for field, offset_field, _ in ACL_COMPONENTS:
            if self[field] is not None:
                lines.append('{}{} (offset {}):'.format(INDENT * (indent + 1), field.upper(), self[offset_field]))
                lines.append(self[field].to_indented_string(indent + 2))
        return '\n'.join(lines)
