"""Allow `python -m caff`."""

from caff.caff import main

main()
