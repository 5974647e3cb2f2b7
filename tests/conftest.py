import datetime as dt
import textwrap

import pytest

from folio.models import DocType, Document


@pytest.fixture
def write_source(tmp_path):
    """Write dedented source files under ``tmp_path / "src"``."""
    root = tmp_path / "src"
    root.mkdir()

    def write(rel, text):
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(text).lstrip("\n"), encoding="utf-8")
        return path

    write.root = root
    return write


@pytest.fixture
def make_doc():
    def make(doc_id, doc_type=DocType.POST, date=None, **fields):
        if doc_type is DocType.POST and date is None:
            date = dt.datetime(2020, 1, 1)
        defaults = {
            "title": doc_id.title(),
            "template_name": doc_type.value,
            "body": f"Body of {doc_id}.",
        }
        defaults.update(fields)
        return Document(id=doc_id, type=doc_type, date=date, **defaults)

    return make
