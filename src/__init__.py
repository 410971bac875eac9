"""
Initializes the 'src' directory as a Python package.

This lets `main.py` at the project root import the application package as
`src.nativebridge` without installing it. Installed copies and the tests
import it as `nativebridge`.
"""
