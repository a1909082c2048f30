"""Shared fixtures: a small dump exercising every declaration kind."""

from __future__ import annotations

import pytest

from dumpheaders.config import Config
from dumpheaders.parser import parse_dump
from dumpheaders.pipeline import PipelineInputs
from dumpheaders.registry import TypeRegistry

SAMPLE_LINES = [
    "typedef unsigned char undefined;",
    "typedef unsigned int undefined4;",
    "typedef unsigned char bool;",
    "typedef enum UnitType {",
    "    UNIT_MISSILE=3,",
    "    UNIT_PLAYER=0,",
    "    UNIT_MONSTER=1,",
    "    UNIT_OBJECT=2",
    "} UnitType;",
    "",
    "typedef struct Room Room;",
    "",
    "struct Room { /* A map room */",
    "    int x;",
    "    int y;",
    "    struct Room *pNext;",
    "};",
    "",
    "union UnitData {",
    "    struct Player *pPlayer; /* when player */",
    "    void *pRaw;",
    "};",
    "",
    "struct Player {",
    "    char szName[16];",
    "    undefined4 field_0x10;",
    "    undefined4 field_0x14;",
    "    undefined4 field_0x18;",
    "    bool bDead;",
    "};",
    "",
    "struct UnitAny {",
    "    enum UnitType eType;",
    "    union UnitData *pData;",
    "    struct Room *pRoom;",
    "    void (*pfnUpdate)(struct UnitAny *, int);",
    "    undefined field_0x10;",
    "    char aBuf[0];",
    "};",
    "",
    "struct Unused {",
    "    int a;",
    "};",
    "",
]

SAMPLE_DUMP = "\r\n".join(SAMPLE_LINES)

METHODS_SOURCE = "\r\n".join(
    [
        '#include "../headers/ghidra.h"',
        "",
        "int Ghidra::UnitAny::GetHealth(int nIndex) {",
        "    return Ghidra::UnitAny::Other(nIndex);",
        "}",
        "",
        "void Ghidra::Unused::Touch() {",
        "}",
        "",
        "bool Ghidra::Missing::Nope() {",
        "}",
    ]
)

EXTENSIONS_SOURCE = "\r\n".join(
    [
        "#pragma once",
        "namespace Ghidra {",
        "struct PlayerUnit : public Ghidra::UnitAny {",
        "    int GetLevel();",
        "};",
        "class Helper : Room {",
        "};",
        "struct Orphan : public Nothing {};",
        "}",
    ]
)

# Resolution order of the sample for roots ["UnitType", "UnitAny"].
SAMPLE_ORDER = [
    "UnitType",
    "undefined4",
    "bool",
    "Player",
    "UnitData",
    "Room",
    "callback_void1pfnUpdate",
    "undefined",
    "UnitAny",
]


@pytest.fixture
def sample_dump() -> str:
    return SAMPLE_DUMP


@pytest.fixture
def sample_order() -> list[str]:
    return list(SAMPLE_ORDER)


@pytest.fixture
def methods_source() -> str:
    return METHODS_SOURCE


@pytest.fixture
def extensions_source() -> str:
    return EXTENSIONS_SOURCE


@pytest.fixture
def sample_registry() -> TypeRegistry:
    return parse_dump(SAMPLE_DUMP)


@pytest.fixture
def sample_config() -> Config:
    return Config(structs=["UnitAny"], enums=["UnitType"])


@pytest.fixture
def sample_inputs(sample_config: Config) -> PipelineInputs:
    return PipelineInputs(
        dump=SAMPLE_DUMP,
        config=sample_config,
        method_source=METHODS_SOURCE,
        extension_source=EXTENSIONS_SOURCE,
    )
