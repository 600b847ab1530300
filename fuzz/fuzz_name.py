import sys

import atheris
from helpers import EnhancedDataProvider

with atheris.instrument_imports():
    from pushform import Name, NameView


def TestOneInput(data: bytes) -> None:
    fdp = EnhancedDataProvider(data)
    name = Name(fdp.ConsumeRandomString())

    view = NameView(name)
    keys = []
    while not view.is_terminal():
        end = view.end
        keys.append(view.key_lossy())
        view.shift()
        assert view.start == end
        if view.end == end:
            break

    list(name.prefixes())
    assert Name(str(name)) == name


def main():
    atheris.Setup(sys.argv, TestOneInput)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
