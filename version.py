"""Project version constants.

These constants are used in logs and embedded in the export summary so that
exported CSV files can be traced back to a specific tool version.
"""

ENGINE_NAME: str = "postureexport"
ENGINE_VERSION: str = "0.1.0"
