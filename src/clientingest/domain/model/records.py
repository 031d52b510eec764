"""Untyped record shapes produced by tokenizing or decoding operator input."""

from __future__ import annotations

from collections.abc import Mapping

type RawRecord = Mapping[str, object]
