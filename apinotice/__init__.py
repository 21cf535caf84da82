"""apinotice: scheduled deprecation and sunset notices for published APIs.

Nothing is re-exported here; import from the layer packages directly.
"""
