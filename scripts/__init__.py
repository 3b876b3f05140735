"""Maintenance, image-repair and SEO post-processing scripts for the art appraiser directory.

Each module is a standalone command-line entry point:

    python -m scripts.<name> [flags]
"""
