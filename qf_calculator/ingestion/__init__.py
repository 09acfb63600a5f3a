"""
qf_calculator.ingestion — Data sources consumed by the calculator.

Modules:
    data_provider — DataProvider interface + FileSystemDataProvider (JSON).
    sources       — RoundDataSource: votes, applications, rounds and passport
                    scores parsed into the core data model.
"""
