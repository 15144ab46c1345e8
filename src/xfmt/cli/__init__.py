"""xfmt command line interface"""
