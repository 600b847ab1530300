import inspect

import nox

nox.needs_version = ">=2024.4.15"
nox.options.default_venv_backend = "uv|virtualenv"


@nox.session(python=["3.10", "3.11", "3.12"])
def tests(session: nox.Session) -> None:
    session.install("-e.[test]")
    session.run("pytest", "--timeout=30", "tests", *session.posargs)


@nox.session
@nox.parametrize("editable", [True, False])
def install(session: nox.Session, editable: bool) -> None:
    session.install("-e." if editable else ".")
    version = session.run("python", "-c", "import pushform; print(pushform.__version__)", silent=True)
    assert version.strip()


@nox.session
def multipart_oldest(session: nox.Session) -> None:
    """Runs the body tests against the oldest supported python-multipart."""
    session.install("-e.[test]")
    session.install("python-multipart==0.0.13")
    res = session.run(
        "python",
        "-c",
        inspect.cleandoc("""
        import python_multipart
        from python_multipart.multipart import File

        print(python_multipart.__version__, hasattr(File(b"a"), "content_type"))
    """),
        silent=True,
    )
    session.log(res)
    session.run("pytest", "--timeout=30", "tests/test_body.py", "tests/test_upload.py")
