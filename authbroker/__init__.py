"""Authentication broker releasing a shared repository credential to authorized CMS editors."""
