"""Metadata resolution, call statement building and parameter binding."""

from procspec.core.binding import bind_inputs, bind_outputs
from procspec.core.metadata import EntityMetadata, MetadataResolver, ParameterDescriptor
from procspec.core.statement import CallStatement, build_call_statement, parse_call_statement, render_native_call

__all__ = (
    "CallStatement",
    "EntityMetadata",
    "MetadataResolver",
    "ParameterDescriptor",
    "bind_inputs",
    "bind_outputs",
    "build_call_statement",
    "parse_call_statement",
    "render_native_call",
)
