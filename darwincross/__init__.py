"""
darwincross: provision a Linux-hosted Swift toolchain that targets macOS.
"""
