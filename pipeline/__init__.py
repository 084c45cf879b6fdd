"""Pipeline components.

This package contains the resource graph query catalog, the CSV writer, the
export summary and the pipeline runner that ties them together.
"""
