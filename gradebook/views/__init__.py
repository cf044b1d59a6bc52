"""
Gradebook views package.

- rubrics: grade rubrics and assignments
- grades: grade entry and the class grade matrix
- terms: closing/reopening terms and term/annual averages
"""
