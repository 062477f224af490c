"""stackcore: publish a compiled stack definition's outputs.

Subpackages:
  - adapter      load definition module → invoke entry → publish OutputSet
  - definitions  stack.yaml manifests (module path, entry, checksum)
  - config       YAML + ENV configuration (pydantic)
  - events       in-process event bus
  - metrics      in-memory counters / histograms
"""
