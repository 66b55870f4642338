"""HTTP surface for the flowgraph converter."""
