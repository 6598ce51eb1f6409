import pytest

from models import load_dataset


@pytest.fixture
def trio():
    """Founder couple with one daughter, the proband."""
    return load_dataset([
        {"name": "m21", "sex": "M", "top_level": True},
        {"name": "f21", "sex": "F", "top_level": True},
        {"name": "ch1", "sex": "F", "mother": "f21", "father": "m21", "proband": True},
    ])


@pytest.fixture
def family():
    """Three generations with two married-in spouses."""
    return load_dataset([
        {"name": "m21", "sex": "M", "top_level": True},
        {"name": "f21", "sex": "F", "top_level": True},
        {"name": "ch1", "sex": "F", "mother": "f21", "father": "m21", "proband": True},
        {"name": "sib", "sex": "M", "mother": "f21", "father": "m21"},
        {"name": "w", "sex": "F", "mother": "f21", "father": "m21", "noparents": True},
        {"name": "gc1", "sex": "M", "mother": "w", "father": "sib"},
        {"name": "gc2", "sex": "F", "mother": "w", "father": "sib"},
        {"name": "h", "sex": "M", "mother": "f21", "father": "m21", "noparents": True},
        {"name": "k", "sex": "F", "mother": "ch1", "father": "h"},
    ])


@pytest.fixture
def twins():
    """Proband with a brother and a pair of identical twin sisters."""
    return load_dataset([
        {"name": "m21", "sex": "M", "top_level": True},
        {"name": "f21", "sex": "F", "top_level": True},
        {"name": "t1", "sex": "F", "mother": "f21", "father": "m21", "mztwin": "1"},
        {"name": "b1", "sex": "M", "mother": "f21", "father": "m21"},
        {"name": "t2", "sex": "F", "mother": "f21", "father": "m21", "mztwin": "1"},
        {"name": "ch1", "sex": "F", "mother": "f21", "father": "m21", "proband": True},
    ])


@pytest.fixture
def cousins():
    """Sibling partners with one child."""
    return load_dataset([
        {"name": "m21", "sex": "M", "top_level": True},
        {"name": "f21", "sex": "F", "top_level": True},
        {"name": "a", "sex": "M", "mother": "f21", "father": "m21"},
        {"name": "b", "sex": "F", "mother": "f21", "father": "m21"},
        {"name": "c", "sex": "F", "mother": "b", "father": "a", "proband": True},
    ])


@pytest.fixture
def branch():
    """A brother whose only link to the proband runs through himself."""
    return load_dataset([
        {"name": "m21", "sex": "M", "top_level": True},
        {"name": "f21", "sex": "F", "top_level": True},
        {"name": "ch1", "sex": "F", "mother": "f21", "father": "m21", "proband": True},
        {"name": "sib", "sex": "M", "mother": "f21", "father": "m21"},
        {"name": "w", "sex": "F", "mother": "f21", "father": "m21", "noparents": True},
        {"name": "gc", "sex": "M", "mother": "w", "father": "sib"},
    ])
