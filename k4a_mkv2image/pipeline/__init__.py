"""Producer/consumer pipeline: frame source -> stream queues -> export workers.

Submodules are imported directly (``k4a_mkv2image.pipeline.export_worker``)
so that importing the package stays free of OpenCV side effects.
"""
