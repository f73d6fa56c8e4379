"""Settings package for the CoworKing Café backend.

`base.py` holds everything shared. `dev.py`, `prod.py` and `test.py`
override it per environment.
"""
