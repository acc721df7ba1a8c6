"""
Concrete clients for the external capabilities.

Import the submodules directly (``providers.gemini``, ``providers.qdrant``)
so that using one provider does not import the other's SDK.
"""
