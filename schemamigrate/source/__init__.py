"""Migration sources: the driver interface and registry, file-name parsing, and file, tree, asset and stub drivers."""