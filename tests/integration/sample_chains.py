"""
Chains loaded by the CLI tests through 'sample_chains:<name>'.
"""

from typing import Literal

from pydantic import BaseModel

from versionchain import VersionChain


class NoteV1(BaseModel):
    v: Literal[1]
    title: str


class NoteV2(NoteV1):
    v: Literal[2]
    content: str


class NoteV3(NoteV2):
    v: Literal[3]
    tags: list[str]


chain = (
    VersionChain()
    .register(NoteV1)
    .register(NoteV2, lambda d: {**d, "content": ""})
    .register(NoteV3, lambda d: {**d, "tags": []})
)

# v2 adds a required field with no upgrade to fill it in
broken_chain = VersionChain().register(NoteV1).register(NoteV2)


def make_chain() -> VersionChain:
    return VersionChain().register(NoteV1)


not_a_chain = {"v": 1}
