"""
This package contains the conversion pipelines.

`ConversionPipeline` runs the ordered stage sequence for one file;
`BatchOrchestrator` runs it over a queue of files with fail-fast semantics.
"""
