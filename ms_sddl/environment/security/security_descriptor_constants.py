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

""" Constants used for encoding and decoding security descriptors, their access control lists (ACLs),
access control entries (ACEs) and security identifiers (SIDs).
"""
from enum import Enum


# Field names used by the structures

# General constants used across structures
CONTROL = 'Control'
MASK = 'Mask'
REVISION = 'Revision'
SBZ1 = 'Sbz1'
SBZ2 = 'Sbz2'

# Sacl and Dacl
SACL = 'Sacl'
DACL = 'Dacl'

# Offset constants
OFFSET_OWNER = 'OffsetOwner'
OFFSET_GROUP = 'OffsetGroup'
OFFSET_SACL = 'OffsetSacl'
OFFSET_DACL = 'OffsetDacl'

# SID constants
OWNER_SID = 'OwnerSid'
GROUP_SID = 'GroupSid'
SID = 'Sid'

# Object authority constants
IDENTIFIER_AUTHORITY = 'IdentifierAuthority'
SUB_AUTHORITY = 'SubAuthority'
SUB_AUTHORITY_COUNT = 'SubAuthorityCount'

# ACL constants
ACE_COUNT = 'AceCount'
ACES = 'Aces'
ACL_REVISION = 'AclRevision'
ACL_SIZE = 'AclSize'
ACL_TYPE = 'AclType'

# ACE constants
ACE_FLAGS = 'AceFlags'
ACE_SIZE = 'AceSize'
ACE_TYPE = 'AceType'


# Revisions and sizes of the binary formats
SECURITY_DESCRIPTOR_REVISION = 1
ACL_REVISION_DS = 2
SID_REVISION = 1

SECURITY_DESCRIPTOR_HEADER_SIZE = 20
ACL_HEADER_SIZE = 8
# 4 byte ACE_HEADER plus the 4 byte access mask
ACE_HEADER_SIZE = 8
SID_HEADER_SIZE = 8
SUB_AUTHORITY_SIZE = 4
# an ACE is at least its header and the smallest possible SID
MIN_ACE_SIZE = ACE_HEADER_SIZE + SID_HEADER_SIZE

MAX_SUB_AUTHORITIES = 15
MAX_IDENTIFIER_AUTHORITY = 1 << 48
MAX_SUB_AUTHORITY = 1 << 32
# ACL and ACE sizes are unsigned 16-bit fields
MAX_STRUCTURE_SIZE = 0xFFFF
# authorities at or above this are rendered as hex in SID strings
HEX_AUTHORITY_THRESHOLD = 1 << 32


# Security descriptor control flags
# see: https://docs.microsoft.com/en-us/openspecs/windows_protocols/ms-dtyp/7d4dac05-9cef-4563-a058-f108abecce1d
SE_OWNER_DEFAULTED = 0x0001
SE_GROUP_DEFAULTED = 0x0002
SE_DACL_PRESENT = 0x0004
SE_DACL_DEFAULTED = 0x0008
SE_SACL_PRESENT = 0x0010
SE_SACL_DEFAULTED = 0x0020
SE_DACL_TRUSTED = 0x0040
SE_SERVER_SECURITY = 0x0080
SE_DACL_AUTO_INHERIT_REQ = 0x0100
SE_SACL_AUTO_INHERIT_REQ = 0x0200
SE_DACL_AUTO_INHERITED = 0x0400
SE_SACL_AUTO_INHERITED = 0x0800
SE_DACL_PROTECTED = 0x1000
SE_SACL_PROTECTED = 0x2000
SE_RM_CONTROL_VALID = 0x4000
SE_SELF_RELATIVE = 0x8000

# used when rendering control flags for humans
CONTROL_FLAG_NAMES = {
    SE_OWNER_DEFAULTED: 'SE_OWNER_DEFAULTED',
    SE_GROUP_DEFAULTED: 'SE_GROUP_DEFAULTED',
    SE_DACL_PRESENT: 'SE_DACL_PRESENT',
    SE_DACL_DEFAULTED: 'SE_DACL_DEFAULTED',
    SE_SACL_PRESENT: 'SE_SACL_PRESENT',
    SE_SACL_DEFAULTED: 'SE_SACL_DEFAULTED',
    SE_DACL_TRUSTED: 'SE_DACL_TRUSTED',
    SE_SERVER_SECURITY: 'SE_SERVER_SECURITY',
    SE_DACL_AUTO_INHERIT_REQ: 'SE_DACL_AUTO_INHERIT_REQ',
    SE_SACL_AUTO_INHERIT_REQ: 'SE_SACL_AUTO_INHERIT_REQ',
    SE_DACL_AUTO_INHERITED: 'SE_DACL_AUTO_INHERITED',
    SE_SACL_AUTO_INHERITED: 'SE_SACL_AUTO_INHERITED',
    SE_DACL_PROTECTED: 'SE_DACL_PROTECTED',
    SE_SACL_PROTECTED: 'SE_SACL_PROTECTED',
    SE_RM_CONTROL_VALID: 'SE_RM_CONTROL_VALID',
    SE_SELF_RELATIVE: 'SE_SELF_RELATIVE',
}


# ACE types
ACCESS_ALLOWED_ACE_TYPE = 0x00
ACCESS_DENIED_ACE_TYPE = 0x01
SYSTEM_AUDIT_ACE_TYPE = 0x02
SYSTEM_ALARM_ACE_TYPE = 0x03
ACCESS_ALLOWED_OBJECT_ACE_TYPE = 0x05

# ACE flags
OBJECT_INHERIT_ACE = 0x01
CONTAINER_INHERIT_ACE = 0x02
NO_PROPAGATE_INHERIT_ACE = 0x04
INHERIT_ONLY_ACE = 0x08
INHERITED_ACE = 0x10
SUCCESSFUL_ACCESS_ACE_FLAG = 0x40
FAILED_ACCESS_ACE_FLAG = 0x80
AUDIT_ACE_FLAGS = SUCCESSFUL_ACCESS_ACE_FLAG | FAILED_ACCESS_ACE_FLAG


# SDDL string grammar
# see: https://docs.microsoft.com/en-us/windows/win32/secauthz/security-descriptor-string-format

OWNER_PREFIX = 'O:'
GROUP_PREFIX = 'G:'
DACL_PREFIX = 'D:'
SACL_PREFIX = 'S:'
SECURITY_DESCRIPTOR_COMPONENT_PREFIXES = [OWNER_PREFIX, GROUP_PREFIX, DACL_PREFIX, SACL_PREFIX]

# ACL types as they appear in front of the ':' of an ACL
DACL_TYPE = 'D'
SACL_TYPE = 'S'

ACE_OPEN = '('
ACE_CLOSE = ')'
ACE_FIELD_SEPARATOR = ';'
ACE_FIELD_COUNT = 6
SID_STRING_PREFIX = 'S-'
HEX_PREFIX = '0x'

ACE_TYPE_STR_TO_VALUE = {
    'A': ACCESS_ALLOWED_ACE_TYPE,
    'D': ACCESS_DENIED_ACE_TYPE,
    'AU': SYSTEM_AUDIT_ACE_TYPE,
    'AL': SYSTEM_ALARM_ACE_TYPE,
    'OA': ACCESS_ALLOWED_OBJECT_ACE_TYPE,
}
ACE_TYPE_VALUE_TO_STR = {value: code for code, value in ACE_TYPE_STR_TO_VALUE.items()}

# inheritance flags may be used on any ACE type
ACE_INHERITANCE_FLAG_STR_TO_VALUE = {
    'OI': OBJECT_INHERIT_ACE,
    'CI': CONTAINER_INHERIT_ACE,
    'NP': NO_PROPAGATE_INHERIT_ACE,
    'IO': INHERIT_ONLY_ACE,
    'ID': INHERITED_ACE,
}
# audit flags may only be used on system audit ACEs
ACE_AUDIT_FLAG_STR_TO_VALUE = {
    'SA': SUCCESSFUL_ACCESS_ACE_FLAG,
    'FA': FAILED_ACCESS_ACE_FLAG,
}
# the order in which flags are written out when rendering an ACE. audit flags come first and are
# only written for system audit ACEs. NP is written between CI and IO so that no-propagate ACEs
# keep that flag when rendered and parsed back.
ACE_AUDIT_FLAG_RENDER_ORDER = ['SA', 'FA']
ACE_INHERITANCE_FLAG_RENDER_ORDER = ['OI', 'CI', 'NP', 'IO', 'ID']

# ACL flags that follow the 'D:' or 'S:' of an ACL. two character flags are matched before single
# character ones. NO and IO are valid syntax but have no control flag to represent them, so they are
# accepted and dropped.
ACL_TWO_CHAR_FLAGS = ['AI', 'AR', 'NO', 'IO']
ACL_ONE_CHAR_FLAGS = ['P', 'R']
# the control flags represented by each ACL flag for each ACL type, in rendering order
ACL_FLAG_TO_CONTROL = {
    DACL_TYPE: {
        'P': SE_DACL_PROTECTED,
        'AI': SE_DACL_AUTO_INHERITED,
        'AR': SE_DACL_AUTO_INHERIT_REQ,
        'R': SE_DACL_DEFAULTED,
    },
    SACL_TYPE: {
        'P': SE_SACL_PROTECTED,
        'AI': SE_SACL_AUTO_INHERITED,
        'AR': SE_SACL_AUTO_INHERIT_REQ,
        'R': SE_SACL_DEFAULTED,
    },
}
ACL_TYPE_TO_PRESENT_CONTROL = {
    DACL_TYPE: SE_DACL_PRESENT,
    SACL_TYPE: SE_SACL_PRESENT,
}
ACL_TYPE_TO_DEFAULTED_CONTROL = {
    DACL_TYPE: SE_DACL_DEFAULTED,
    SACL_TYPE: SE_SACL_DEFAULTED,
}
# the ACL flags that are lifted up into the security descriptor control when an ACL is parsed
# from a string
ACL_INHERITANCE_CONTROL_FLAGS = {
    DACL_TYPE: SE_DACL_PROTECTED | SE_DACL_AUTO_INHERITED | SE_DACL_AUTO_INHERIT_REQ,
    SACL_TYPE: SE_SACL_PROTECTED | SE_SACL_AUTO_INHERITED | SE_SACL_AUTO_INHERIT_REQ,
}

# a security descriptor parsed from a string starts out with every component defaulted, and each
# component found in the string clears its defaulted flag
SDDL_STRING_INITIAL_CONTROL = (SE_SELF_RELATIVE | SE_OWNER_DEFAULTED | SE_GROUP_DEFAULTED |
                               SE_DACL_DEFAULTED | SE_SACL_DEFAULTED)


# Constants for reading security descriptors over LDAP

# used to construct controls
AD_SERVER_SECURITY_DESCRIPTOR_FLAGS_OID = '1.2.840.113556.1.4.801'
# the parts of the security descriptor that the server should return
# see: https://docs.microsoft.com/en-us/openspecs/windows_protocols/ms-adts/3888c2b7-35b9-45b7-afeb-b772aa932dd0
OWNER_SECURITY_INFORMATION = 0x01
GROUP_SECURITY_INFORMATION = 0x02
DACL_SECURITY_INFORMATION = 0x04
SACL_SECURITY_INFORMATION = 0x08
SECURITY_DESCRIPTOR_LDAP_ATTRIBUTE = 'nTSecurityDescriptor'


# Windows has some "well known SIDs" that people may want to use.
# These are independent of the actual domain
# see: https://docs.microsoft.com/en-us/windows/win32/secauthz/well-known-sids
# also see: https://docs.microsoft.com/en-us/windows/security/identity-protection/access-control/security-identifiers


class WellKnownSID(Enum):
    # The first few are universally well known even outside of windows, while the later ones are
    # only well-known within the windows security model
    NULL = 'S-1-0-0'
    EVERYONE = 'S-1-1-0'
    LOCAL = 'S-1-2-0'
    # the following 2 will refer to the user/computer that created an object and the primary group SID
    # of that user/computer. the values are the real SIDs, but their SDDL aliases don't follow the names:
    # CREATOR_OWNER renders as CC, CREATOR_GROUP as CO, and OWNER_RIGHTS has no alias (OW is S-1-3-3)
    CREATOR_OWNER = 'S-1-3-0'
    CREATOR_GROUP = 'S-1-3-1'
    OWNER_RIGHTS = 'S-1-3-4'

    # the following all exist within the windows NT authority (S-1-5) and are well-known and meaningful on
    # windows systems.
    DIALUP = 'S-1-5-1'
    NETWORK = 'S-1-5-2'
    BATCH = 'S-1-5-3'
    INTERACTIVE = 'S-1-5-4'
    SERVICE = 'S-1-5-6'  # accounts authorized to act as a service
    ANONYMOUS = 'S-1-5-7'  # anonymous users (e.g. an ldap session bound with no user/password)
    PROXY = 'S-1-5-8'
    ENTERPRISE_CONTROLLERS = 'S-1-5-9'  # enterprise controllers
    SELF = 'S-1-5-10'  # referring to an object's self
    AUTHENTICATED_USERS = 'S-1-5-11'  # all authenticated users. does not include guest accounts
    RESTRICTED_CODE = 'S-1-5-12'
    LOCAL_OS = 'S-1-5-18'  # The operating system

    # default domain groups
    ADMINISTRATORS_BUILT_IN_GROUP = 'S-1-5-32-544'
    USERS_BUILT_IN_GROUP = 'S-1-5-32-545'
    GUESTS_BUILT_IN_GROUP = 'S-1-5-32-546'
    # Power users can create local users/groups, add/remove printers and file shares, and a few other things
    POWER_USERS_BUILT_IN_GROUP = 'S-1-5-32-547'
    # Can create/modify/delete user, group, and computer accounts across the domain
    ACCOUNT_OPERATORS_BUILT_IN_GROUP = 'S-1-5-32-548'
    # Can manage services, backup/restore files, format the hard disk, and do some other things
    SERVER_OPERATORS_BUILT_IN_GROUP = 'S-1-5-32-549'
    # Can manager printers and queues
    PRINT_OPERATORS_BUILT_IN_GROUP = 'S-1-5-32-550'
    # Can manage backup and restore
    BACKUP_OPERATORS_BUILT_IN_GROUP = 'S-1-5-32-551'
    # manages replication services
    REPLICATORS_BUILT_IN_GROUP = 'S-1-5-32-552'
    PRE_WINDOWS_2000_COMPATIBLE_ACCESS_BUILT_IN_GROUP = 'S-1-5-32-554'
    # users who can login interactively using RDP
    REMOTE_DESKTOP_USERS_BUILT_IN_GROUP = 'S-1-5-32-555'
    # Network operators can configure networking, duh
    NETWORK_CONFIG_OPERATORS_BUILT_IN_GROUP = 'S-1-5-32-556'
    # These users can use WS-Management for WMI namespaces
    REMOTE_MANAGEMENT_USERS_BUILT_IN_GROUP = 'S-1-5-32-580'
    # membership controlled by the OS
    ALL_SERVICES_BUILT_IN_GROUP = 'S-1-5-80-0'
