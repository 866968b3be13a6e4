from conformos.driver import main

raise SystemExit(main())
