from pkgplan.cli import main

raise SystemExit(main())
