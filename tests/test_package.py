"""Tests for the package namespace."""

import pytest

import foliosearch


def test_lazy_exports():
    for name in foliosearch._EXPORTS:
        assert getattr(foliosearch, name) is not None
    assert set(foliosearch._EXPORTS) <= set(foliosearch.__all__)


def test_unknown_attribute():
    with pytest.raises(AttributeError):
        foliosearch.NoSuchThing


def test_version():
    assert foliosearch.versionstring() == foliosearch.__version__
