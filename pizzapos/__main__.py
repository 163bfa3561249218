from pizzapos.main import main

main()
