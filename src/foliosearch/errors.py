# Copyright 2025 Foliosearch Contributors.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
#    1. Redistributions of source code must retain the above copyright notice,
#       this list of conditions and the following disclaimer.
#
#    2. Redistributions in binary form must reproduce the above copyright
#       notice, this list of conditions and the following disclaimer in the
#       documentation and/or other materials provided with the distribution.

"""Exceptions raised by foliosearch."""


class FolioSearchError(Exception):
    """Base class for foliosearch errors."""


class EmbeddingError(FolioSearchError):
    """Raised when an embedding provider cannot produce a vector."""


class HistoryError(FolioSearchError):
    """Raised when the search history cannot be persisted in strict mode."""
