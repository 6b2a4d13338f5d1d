"""Code that runs inside the sandbox subprocess.

Kept free of heavy imports so the child interpreter starts quickly.
"""
