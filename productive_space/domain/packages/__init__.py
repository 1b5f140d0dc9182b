"""Pass packages: catalog, purchase wizard and owned passes"""
