# Copyright (c) Syntropy Systems
"""runview command line interface."""
