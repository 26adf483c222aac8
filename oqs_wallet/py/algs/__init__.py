"""
oqs_wallet.py.algs — native algorithm backends.

Only liboqs (loaded through ctypes) is supported; see `oqs_backend`.
"""
