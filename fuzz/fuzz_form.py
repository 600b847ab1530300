import asyncio
import sys
from dataclasses import dataclass, field
from typing import Optional

import atheris
from helpers import EnhancedDataProvider

with atheris.instrument_imports():
    from pushform import Contextual, Errors, parse_body, parse_form, parse_form_encoded


@dataclass
class Pet:
    name: str
    age: Optional[int] = None


@dataclass
class Owner:
    name: str
    active: bool
    pets: dict[str, Pet] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)
    pair: Optional[tuple[int, float]] = None


def parse_raw(fdp: EnhancedDataProvider) -> None:
    parse_form(Owner, fdp.ConsumeRandomString(), strict=fdp.ConsumeBool())


def parse_encoded(fdp: EnhancedDataProvider) -> None:
    parse_form_encoded(Owner, fdp.ConsumeRandomString(), strict=fdp.ConsumeBool())


def parse_contextual(fdp: EnhancedDataProvider) -> None:
    result = parse_form(Contextual[Owner], fdp.ConsumeRandomString())
    result.context.status()


def parse_urlencoded_body(fdp: EnhancedDataProvider) -> None:
    header = {"Content-Type": "application/x-www-form-urlencoded"}
    asyncio.run(parse_body(Owner, header, fdp.ConsumeRandomBytes()))


def parse_multipart_body(fdp: EnhancedDataProvider) -> None:
    boundary = "boundary"
    header = {"Content-Type": f"multipart/form-data; boundary={boundary}"}
    body = (
        f"--{boundary}\r\n"
        f'Content-Disposition: form-data; name="{fdp.ConsumeUnicodeNoSurrogates(16)}"\r\n\r\n'
        f"{fdp.ConsumeRandomString()}\r\n"
        f"--{boundary}--\r\n"
    )
    asyncio.run(parse_body(Owner, header, body.encode("latin1", errors="ignore")))


def TestOneInput(data: bytes) -> None:
    fdp = EnhancedDataProvider(data)
    targets = [parse_raw, parse_encoded, parse_contextual, parse_urlencoded_body, parse_multipart_body]
    target = fdp.PickValueInList(targets)

    try:
        target(fdp)
    except Errors:
        return


def main():
    atheris.Setup(sys.argv, TestOneInput)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
