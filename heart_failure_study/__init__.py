"""
Heart failure survival study.

Loads the heart failure clinical records dataset, fits logistic regression,
k-nearest neighbours, random forest and linear/radial SVM classifiers,
checks the logistic model's assumptions, compares cross-validated accuracy
and ranks the clinical risk factors for death during follow-up.

DISCLAIMER: This is a statistical analysis of a public dataset for
coursework. It does NOT provide medical diagnoses or treatment
recommendations.
"""

__version__ = "0.1.0"
