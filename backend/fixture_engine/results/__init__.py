"""
Results Layer

Match result recording and standings calculation. Pure calculation lives in
calculator.py; persistence goes through the ResultsStore protocol in store.py.
"""
