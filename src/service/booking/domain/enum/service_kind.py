from enum import StrEnum


class ServiceKind(StrEnum):
    NURSING = 'nursing'
    PHYSIOTHERAPY = 'physiotherapy'
    PACKAGE = 'package'


class CancelledBy(StrEnum):
    CLIENT = 'client'
    PROVIDER = 'provider'
    SYSTEM = 'system'
