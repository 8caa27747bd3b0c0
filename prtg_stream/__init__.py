# ==============================================
# PRTG Stream
# ==============================================
#
# Package Structure (4 Topics + Client):
#
# prtg_stream/
# ├── request/      # Topic 1: Build queries, fetch one page, retry policy
# ├── streaming/    # Topic 2: Paged streams, log tail, cancellation
# ├── progress/     # Topic 3: Scenario classification + progress state machine
# ├── pipeline/     # Topic 4: Stage adapters and the pipeline runner
# ├── config.py     # Configuration management
# ├── errors.py     # Error taxonomy
# ├── client.py     # PrtgClient facade
# └── cli.py        # Command line entry point
#
# ==============================================

__version__ = "0.1.0"
