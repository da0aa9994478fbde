from quizcheck.cli import main

raise SystemExit(main())
